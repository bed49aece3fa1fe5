from __future__ import annotations

import logging
import sys
from typing import List

from .azure.cli import AzCli
from .azure.context import ContextSwitcher, active_subscription_scope
from .azure.flex_migration import prepare_cli
from .azure.subscriptions import filter_subscriptions, list_enabled_subscriptions
from .config import RunConfig, dump_config, load_run_config
from .export.json_array import export_full, export_summary
from .logging import LogConfig, add_run_log_file, get_logger, setup_logging
from .normalize.schema import Subscription
from .report import print_console_summary
from .scan import scan_subscriptions
from .util.errors import AzCliError, ConfigError, as_exit_code
from .util.events import StepTimers, log_event
from .util.rich_progress import ScanProgress

LOG = get_logger(__name__)


def _make_az(cfg: RunConfig) -> AzCli:
    return AzCli.discover(cfg.az_path, default_timeout=cfg.command_timeout)


def _enabled_subscriptions(az: AzCli, cfg: RunConfig) -> List[Subscription]:
    subs = list_enabled_subscriptions(az, timeout=cfg.command_timeout)
    if cfg.subscriptions:
        selected = filter_subscriptions(subs, cfg.subscriptions)
        LOG.info(
            "Applied subscription filter",
            extra={"requested": cfg.subscriptions, "matched": len(selected), "available": len(subs)},
        )
        return selected
    return subs


def cmd_run(cfg: RunConfig) -> int:
    timers = StepTimers()
    log_event(
        LOG,
        logging.INFO,
        "Starting flex migration inventory",
        step="run",
        phase="start",
        timers=timers,
        config=dump_config(cfg),
    )
    az = _make_az(cfg)

    if cfg.skip_setup:
        LOG.info("Skipping Azure CLI setup step")
    else:
        prepare_cli(az, timeout=cfg.command_timeout)

    switcher = ContextSwitcher(az)
    with active_subscription_scope(switcher) as original:
        if original is not None:
            LOG.info("Current subscription captured", extra={"subscription_id": original.id})

        log_event(LOG, logging.INFO, "Listing enabled subscriptions", step="subscriptions", phase="start", timers=timers)
        try:
            subs = _enabled_subscriptions(az, cfg)
        except AzCliError as e:
            log_event(
                LOG,
                logging.WARNING,
                f"Could not list subscriptions; nothing to scan: {e}",
                step="subscriptions",
                phase="warning",
                timers=timers,
            )
            return 0
        if not subs:
            log_event(
                LOG,
                logging.WARNING,
                "No enabled subscriptions found; nothing to scan",
                step="subscriptions",
                phase="warning",
                timers=timers,
            )
            return 0
        log_event(
            LOG,
            logging.INFO,
            f"Found {len(subs)} enabled subscription(s)",
            step="subscriptions",
            phase="complete",
            timers=timers,
            count=len(subs),
        )

        with ScanProgress(enabled=cfg.progress and not cfg.json_logs) as progress:
            result = scan_subscriptions(
                az,
                subs,
                timeout=cfg.command_timeout,
                switcher=switcher,
                progress=progress,
            )

        if not result.records:
            log_event(
                LOG,
                logging.WARNING,
                "No function apps were collected from any subscription; no files written",
                step="export",
                phase="skipped",
                skipped=len(result.skipped),
            )
        else:
            log_event(LOG, logging.INFO, "Writing exports", step="export", phase="start", timers=timers)
            export_full(result.records, cfg.output_all)
            export_summary(result.summaries, cfg.output_summary)
            log_event(
                LOG,
                logging.INFO,
                "Exports written",
                step="export",
                phase="complete",
                timers=timers,
                output_all=str(cfg.output_all),
                output_summary=str(cfg.output_summary),
            )
            print_console_summary(result.summaries, result.records)

    log_event(
        LOG,
        logging.INFO,
        "Flex migration inventory complete",
        step="run",
        phase="complete",
        timers=timers,
        processed=result.processed,
        skipped=len(result.skipped),
        records=len(result.records),
    )
    return 0


def cmd_list_subscriptions(cfg: RunConfig) -> int:
    az = _make_az(cfg)
    for sub in _enabled_subscriptions(az, cfg):
        print(f"{sub.id},{sub.name}")
    return 0


def main() -> None:
    try:
        command, cfg = load_run_config()
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))
        if cfg.log_file:
            add_run_log_file(cfg.log_file)

        if command == "run":
            code = cmd_run(cfg)
        elif command == "list-subscriptions":
            code = cmd_list_subscriptions(cfg)
        else:
            raise ConfigError(f"Unknown command: {command}")

        sys.exit(code)
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        sys.exit(0)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        setup_logging(LogConfig())  # no-op when already configured
        LOG.error("Execution failed", extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
