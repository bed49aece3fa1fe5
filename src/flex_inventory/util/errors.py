from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    CLI_ERROR = 4
    RUNTIME_ERROR = 5


class InventoryError(Exception):
    """Base error for the migration inventory pipeline."""


class ConfigError(InventoryError):
    """Raised for configuration or argument issues."""


class AzCliError(InventoryError):
    """Raised when an Azure CLI call fails in a way that ends the run."""


class AzCliNotFoundError(AzCliError):
    """Raised when the az executable cannot be located."""


class ExportError(InventoryError):
    """Raised when writing output artifacts fails."""


class ContextSkipped(InventoryError):
    """
    A per-subscription condition that drops one subscription from the run.

    Never ends the run; the scan loop logs it and moves on.
    """

    reason = "skipped"

    def __init__(self, subscription_id: Optional[str], message: str) -> None:
        super().__init__(message)
        self.subscription_id = subscription_id
        self.message = message


class SwitchFailed(ContextSkipped):
    reason = "switch_failed"


class InvocationFailed(ContextSkipped):
    reason = "invocation_failed"


class NoJsonFound(ContextSkipped):
    reason = "no_json_found"

    def __init__(self, subscription_id: Optional[str] = None, message: str = "No JSON payload found in output") -> None:
        super().__init__(subscription_id, message)


class MalformedPayload(ContextSkipped):
    reason = "malformed_payload"

    def __init__(self, subscription_id: Optional[str] = None, message: str = "Payload is not valid JSON") -> None:
        super().__init__(subscription_id, message)


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, (ConfigError, ValueError)):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, AzCliError):
        return int(ExitCode.CLI_ERROR)
    if isinstance(exc, (ExportError, InventoryError, OSError)):
        return int(ExitCode.RUNTIME_ERROR)
    return 1
