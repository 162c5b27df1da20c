"""
Hands execution over to a downloaded installer.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Callable, NoReturn

from ytdownloader.exceptions import LaunchError

log = logging.getLogger(__name__)


def _detached_popen_kwargs() -> dict[str, Any]:
    """Popen options that unlink the child from this process's lifetime."""
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":  # pragma: no cover - exercised on Windows
        kwargs["creationflags"] = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
            subprocess, "CREATE_NEW_PROCESS_GROUP", 0
        )
    else:
        kwargs["start_new_session"] = True
    return kwargs


def _terminate(status: int) -> NoReturn:
    logging.shutdown()
    os._exit(status)


class UpdateLauncher:
    """Starts the installer as a detached process, then ends this one."""

    def __init__(
        self,
        popen: Callable[..., Any] = subprocess.Popen,
        exit_process: Callable[[int], Any] = _terminate,
    ):
        self._popen = popen
        self._exit_process = exit_process

    def launch(self, installer_path: str | Path) -> NoReturn:
        """
        Spawns the installer and terminates the current process with status 0.

        Raises:
            LaunchError: If the installer is missing or cannot be spawned.
        """
        path = Path(installer_path)
        if not path.is_file():
            raise LaunchError(f"Installer not found at '{path}'.")

        log.info("[Update] Launching installer…")
        try:
            self._popen([str(path)], **_detached_popen_kwargs())
        except OSError as e:
            raise LaunchError(f"Failed to launch installer '{path}': {e}") from e

        self._exit_process(0)
        # Only reachable when a test substitutes exit_process.
        raise SystemExit(0)
