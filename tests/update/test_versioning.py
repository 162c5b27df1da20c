from __future__ import annotations

import itertools

import pytest

from ytdownloader.update.versioning import VersionGate, VersionTriple, is_newer


@pytest.mark.parametrize(
    ("candidate", "baseline", "expected"),
    [
        ("1.7.0", "1.6.0", True),
        ("1.6.0", "1.6.0", False),
        ("2.0.0", "1.9.9", True),
        ("1.6", "1.6.0", False),
        ("1.10.0", "1.9.0", True),
        ("1.6.1", "1.6.0", True),
        ("1.5.9", "1.6.0", False),
    ],
)
def test_is_newer_examples(candidate: str, baseline: str, expected: bool) -> None:
    assert is_newer(candidate, baseline) is expected


def test_is_newer_is_antisymmetric_and_irreflexive() -> None:
    versions = ["0.0.1", "1.6", "1.6.0", "1.6.1", "1.7.0", "2.0.0", "10.0.0"]
    for a, b in itertools.product(versions, repeat=2):
        assert not (is_newer(a, b) and is_newer(b, a))
        if VersionTriple.parse(a) != VersionTriple.parse(b):
            assert is_newer(a, b) != is_newer(b, a)
    for version in versions:
        assert is_newer(version, version) is False


def test_parse_coerces_non_numeric_and_missing_segments() -> None:
    assert VersionTriple.parse("1.6") == VersionTriple(1, 6, 0)
    assert VersionTriple.parse("1.x.3") == VersionTriple(1, 0, 3)
    assert VersionTriple.parse("2.1.0-beta") == VersionTriple(2, 1, 0)
    assert VersionTriple.parse("1.2.3.4") == VersionTriple(1, 2, 3)
    assert VersionTriple.parse("") == VersionTriple(0, 0, 0)
    assert str(VersionTriple.parse("3.4")) == "3.4.0"


def test_version_gate_compares_against_current_version() -> None:
    gate = VersionGate("1.7.0")

    assert gate.current_version == "1.7.0"
    assert gate.update_available("1.8.0")
    assert not gate.update_available("1.7")
    assert not gate.update_available("1.6.9")
