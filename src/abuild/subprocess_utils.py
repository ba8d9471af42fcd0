"""Platform-safe launching of external build tools.

External tools are started without a console window on Windows and with stdin
connected to the null device, so a compiler can never steal keystrokes from the
terminal running the build.
"""

import subprocess
import sys
from pathlib import Path
from typing import Any


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_popen(cmd: list[str], stdout_path: Path, stderr_path: Path, **kwargs: Any) -> subprocess.Popen:
    """Start a process whose stdout and stderr are written to files.

    The files are opened for the duration of the launch only; the child keeps
    its own handles, so the parent never holds them open while the process runs.

    Args:
        cmd: Command and arguments
        stdout_path: File receiving the process's standard output
        stderr_path: File receiving the process's standard error
        **kwargs: Additional arguments passed to subprocess.Popen

    Returns:
        Popen process handle

    Raises:
        OSError: If the executable cannot be started
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    kwargs.setdefault("stdin", subprocess.DEVNULL)

    with open(stdout_path, "wb") as out, open(stderr_path, "wb") as err:
        return subprocess.Popen(cmd, stdout=out, stderr=err, **kwargs)
