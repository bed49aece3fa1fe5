from __future__ import annotations

from typing import List, Optional

from ..logging import get_logger
from ..normalize.schema import Subscription
from ..util.errors import AzCliError, InvocationFailed
from .cli import AzCli

LOG = get_logger(__name__)

SETUP_ARGS = ["config", "set", "extension.use_dynamic_install=yes_without_prompt", "--only-show-errors"]


def flex_migration_args(subscription: Subscription) -> List[str]:
    return [
        "functionapp",
        "flex-migration",
        "list",
        "--subscription",
        subscription.id,
        "--output",
        "json",
        "--only-show-errors",
    ]


def list_flex_migration(az: AzCli, subscription: Subscription, *, timeout: Optional[int] = None) -> str:
    """
    Run `az functionapp flex-migration list` for one subscription and return raw stdout.

    Single attempt. Non-zero exit, timeout, or launch failure raise InvocationFailed.
    """
    try:
        result = az.run(flex_migration_args(subscription), timeout=timeout)
    except AzCliError as e:
        raise InvocationFailed(subscription.id, str(e)) from e
    if result.timed_out:
        raise InvocationFailed(subscription.id, f"flex-migration list timed out after {timeout or az.default_timeout}s")
    if not result.ok:
        raise InvocationFailed(subscription.id, f"flex-migration list failed: {result.error_excerpt()}")
    return result.stdout


def prepare_cli(az: AzCli, *, timeout: Optional[int] = None) -> bool:
    """
    Let the CLI install extensions on demand without prompting.

    Best effort: a failure is logged and the run continues.
    """
    try:
        result = az.run(SETUP_ARGS, timeout=timeout)
    except AzCliError as e:
        LOG.warning("Azure CLI setup step failed", extra={"error": str(e)})
        return False
    if not result.ok:
        LOG.warning("Azure CLI setup step failed", extra={"error": result.error_excerpt()})
        return False
    return True
