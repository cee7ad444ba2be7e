"""External command execution."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


def _powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def elevate(args: Sequence[str], platform: str | None = None) -> list[str]:
    """Wrap a command so it runs with administrative privileges.

    On Windows the command is started through PowerShell's RunAs verb and the
    wrapper exits with the elevated process's exit code. Elsewhere pkexec or
    sudo is used, whichever is available.

    Args:
        args: Program and arguments.
        platform: Override for sys.platform.

    Returns:
        The wrapped command line.
    """
    platform = platform or sys.platform
    program, *rest = args
    if platform == "win32":
        arg_list = ",".join(_powershell_quote(a) for a in rest) or "@()"
        script = (
            f"$p = Start-Process -FilePath {_powershell_quote(program)} "
            f"-ArgumentList {arg_list} -Verb RunAs -Wait -PassThru; exit $p.ExitCode"
        )
        return ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script]

    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return list(args)
    wrapper = "pkexec" if shutil.which("pkexec") else "sudo"
    return [wrapper, *args]


class ElevatedCommandRunner:
    """Runs external commands with subprocess.

    Satisfies the CommandRunner protocol structurally.
    """

    def run(self, args: Sequence[str], cwd: Path | None = None, elevated: bool = False) -> int:
        """Run a command to completion and return its exit code."""
        command = elevate(args) if elevated else list(args)
        logger.debug("Running %s (cwd=%s)", command, cwd)
        completed = subprocess.run(command, cwd=cwd, check=False)
        return completed.returncode

    def spawn(self, args: Sequence[str], cwd: Path | None = None) -> None:
        """Start a command detached from this process."""
        logger.debug("Spawning %s (cwd=%s)", list(args), cwd)
        subprocess.Popen(list(args), cwd=cwd)
