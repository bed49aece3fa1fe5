from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..util.errors import AzCliError, AzCliNotFoundError

LOG = get_logger(__name__)

DEFAULT_TIMEOUT_S = 300
AZ_CANDIDATES = ("az", "az.cmd", "az.exe")


@dataclass(frozen=True)
class AzResult:
    args: List[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def error_excerpt(self, max_len: int = 300) -> str:
        if self.timed_out:
            return "command timed out"
        text = (self.stderr or self.stdout or "").strip()
        if not text:
            return f"exit code {self.returncode}"
        text = " ".join(text.split())
        if len(text) <= max_len:
            return text
        return text[: max_len - 3].rstrip() + "..."


def resolve_az_executable(az_path: Optional[str] = None) -> str:
    """
    Locate the az executable, honoring an explicit path when given.
    """
    if az_path:
        found = shutil.which(az_path)
        if found:
            return found
        raise AzCliNotFoundError(f"Azure CLI not found at: {az_path}")
    for candidate in AZ_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
    raise AzCliNotFoundError(
        "Azure CLI (az) not found on PATH. Install it from https://learn.microsoft.com/cli/azure/install-azure-cli"
    )


class AzCli:
    """
    Thin wrapper around the az executable.

    Every call blocks until the process exits or the timeout elapses. A
    timeout is reported as an AzResult with timed_out=True; a missing
    executable raises AzCliNotFoundError.
    """

    def __init__(self, executable: str, *, default_timeout: int = DEFAULT_TIMEOUT_S) -> None:
        self.executable = executable
        self.default_timeout = default_timeout

    @classmethod
    def discover(cls, az_path: Optional[str] = None, *, default_timeout: int = DEFAULT_TIMEOUT_S) -> AzCli:
        return cls(resolve_az_executable(az_path), default_timeout=default_timeout)

    def run(self, args: Sequence[str], *, timeout: Optional[int] = None) -> AzResult:
        cmd = [self.executable, *args]
        timeout_s = timeout or self.default_timeout
        kwargs: Dict[str, Any] = {
            "capture_output": True,
            "text": True,
            "timeout": timeout_s,
            "encoding": "utf-8",
            "errors": "replace",
        }
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        LOG.debug("Running az command", extra={"command": " ".join(cmd), "timeout_s": timeout_s})
        try:
            completed = subprocess.run(cmd, **kwargs)
        except subprocess.TimeoutExpired as e:
            LOG.debug("az command timed out", extra={"command": " ".join(cmd), "timeout_s": timeout_s})
            return AzResult(
                args=list(args),
                returncode=-1,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                timed_out=True,
            )
        except FileNotFoundError as e:
            raise AzCliNotFoundError(f"Azure CLI could not be launched: {e}") from e
        except OSError as e:
            raise AzCliError(f"Azure CLI could not be launched: {e}") from e
        return AzResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return str(value)
