from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root and shared helpers are importable."""

    root = Path(__file__).resolve().parent.parent
    for index, entry in enumerate((root, root / "tests")):
        entry_str = str(entry)
        if entry_str not in sys.path:
            sys.path.insert(index, entry_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolate_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("YTDOWNLOADER_EMAIL", raising=False)
    monkeypatch.delenv("YTDOWNLOADER_PASSWORD", raising=False)
