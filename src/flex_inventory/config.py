from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

# --------
# Defaults
# --------
DEFAULT_OUTPUT_ALL = "flex_migration_all.json"
DEFAULT_OUTPUT_SUMMARY = "flex_migration_summary.json"
DEFAULT_COMMAND_TIMEOUT = 300
ALLOWED_CONFIG_KEYS = {
    "output_all",
    "output_summary",
    "skip_setup",
    "subscriptions",
    "command_timeout",
    "az_path",
    "json_logs",
    "log_level",
    "log_file",
    "progress",
}
BOOL_CONFIG_KEYS = {"skip_setup", "json_logs", "progress"}
INT_CONFIG_KEYS = {"command_timeout"}
PATH_CONFIG_KEYS = {"output_all", "output_summary", "log_file"}
STR_CONFIG_KEYS = {"az_path", "log_level"}


@dataclass(frozen=True)
class RunConfig:
    # Outputs
    output_all: Path = Path(DEFAULT_OUTPUT_ALL)
    output_summary: Path = Path(DEFAULT_OUTPUT_SUMMARY)

    # Scope
    subscriptions: Optional[List[str]] = None
    skip_setup: bool = False

    # Azure CLI
    az_path: Optional[str] = None
    command_timeout: int = DEFAULT_COMMAND_TIMEOUT

    # Logging / console
    json_logs: bool = False
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    progress: bool = True


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if not raw:
        return None
    return raw in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
    raise ValueError(f"Config field '{key}' must be an integer")


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS:
            continue
        if value is None:
            normalized[key] = None
            continue
        if key == "subscriptions":
            if isinstance(value, str):
                normalized[key] = _split_csv(value)
            elif isinstance(value, list) and all(isinstance(s, str) for s in value):
                normalized[key] = [s.strip() for s in value if s.strip()]
            else:
                raise ValueError(
                    "Config field 'subscriptions' must be a list of strings or comma-separated string"
                )
        elif key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in INT_CONFIG_KEYS:
            normalized[key] = _coerce_int(key, value)
        elif key in PATH_CONFIG_KEYS:
            if isinstance(value, (str, Path)):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string path")
        elif key in STR_CONFIG_KEYS:
            if isinstance(value, str):
                normalized[key] = value
            else:
                raise ValueError(f"Config field '{key}' must be a string")
    return _compact_dict(normalized)


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge: values in b override a.
    """
    merged = dict(a)
    merged.update(b)
    return merged


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flex-inv",
        description="Inventory Azure Functions apps eligible for Flex Consumption migration",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
        p.add_argument(
            "--json-logs",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Enable JSON logs",
        )
        p.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")
        p.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
        p.add_argument("--az-path", default=None, help="Path to the az executable (default: search PATH)")
        p.add_argument(
            "--command-timeout",
            type=int,
            default=None,
            help=f"Seconds to wait for each az command (default {DEFAULT_COMMAND_TIMEOUT})",
        )
        p.add_argument(
            "--subscriptions",
            default=None,
            help="Comma-separated subscription ids or names to limit the scan to",
        )

    p_run = subparsers.add_parser("run", help="Scan all enabled subscriptions and export results")
    add_common(p_run)
    p_run.add_argument(
        "--output-all",
        type=Path,
        default=None,
        help=f"Full record export path (default {DEFAULT_OUTPUT_ALL})",
    )
    p_run.add_argument(
        "--output-summary",
        type=Path,
        default=None,
        help=f"Per-subscription summary path (default {DEFAULT_OUTPUT_SUMMARY})",
    )
    p_run.add_argument(
        "--skip-setup",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip the Azure CLI extension setup step",
    )
    p_run.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show a progress bar while scanning (default on)",
    )

    p_ls = subparsers.add_parser("list-subscriptions", help="List enabled subscriptions")
    add_common(p_ls)

    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[list[str]] = None,
) -> Tuple[str, RunConfig]:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Returns:
      (command, RunConfig) where command is run|list-subscriptions
    """
    ns = args if args is not None else build_parser().parse_args(argv)
    command = ns.command

    base: Dict[str, Any] = {
        "output_all": DEFAULT_OUTPUT_ALL,
        "output_summary": DEFAULT_OUTPUT_SUMMARY,
        "skip_setup": False,
        "subscriptions": None,
        "command_timeout": DEFAULT_COMMAND_TIMEOUT,
        "az_path": None,
        "json_logs": False,
        "log_level": "INFO",
        "log_file": None,
        "progress": True,
    }

    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "output_all": _env_str("FLEX_INV_OUTPUT_ALL"),
            "output_summary": _env_str("FLEX_INV_OUTPUT_SUMMARY"),
            "skip_setup": _env_bool("FLEX_INV_SKIP_SETUP"),
            "subscriptions": _env_str("FLEX_INV_SUBSCRIPTIONS"),
            "command_timeout": _env_int("FLEX_INV_COMMAND_TIMEOUT"),
            "az_path": _env_str("FLEX_INV_AZ_PATH"),
            "json_logs": _env_bool("FLEX_INV_JSON_LOGS"),
            "log_level": _env_str("FLEX_INV_LOG_LEVEL"),
            "log_file": _env_str("FLEX_INV_LOG_FILE"),
            "progress": _env_bool("FLEX_INV_PROGRESS"),
        }
    )

    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "output_all": getattr(ns, "output_all", None),
            "output_summary": getattr(ns, "output_summary", None),
            "skip_setup": getattr(ns, "skip_setup", None),
            "subscriptions": getattr(ns, "subscriptions", None),
            "command_timeout": getattr(ns, "command_timeout", None),
            "az_path": getattr(ns, "az_path", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
            "log_file": getattr(ns, "log_file", None),
            "progress": getattr(ns, "progress", None),
        }
    )

    merged = _merge_dicts(base, _merge_dicts(file_cfg, _merge_dicts(env_cfg, cli_cfg)))

    subs_raw = merged.get("subscriptions")
    subscriptions: Optional[List[str]] = None
    if isinstance(subs_raw, list):
        subscriptions = [str(s).strip() for s in subs_raw if str(s).strip()]
    elif isinstance(subs_raw, str):
        subscriptions = _split_csv(subs_raw)

    timeout = int(merged["command_timeout"] or DEFAULT_COMMAND_TIMEOUT)
    if timeout <= 0:
        raise ValueError("command_timeout must be a positive number of seconds")

    log_file = merged.get("log_file")
    az_path = merged.get("az_path")

    cfg = RunConfig(
        output_all=Path(merged["output_all"] or DEFAULT_OUTPUT_ALL),
        output_summary=Path(merged["output_summary"] or DEFAULT_OUTPUT_SUMMARY),
        subscriptions=subscriptions or None,
        skip_setup=bool(merged["skip_setup"]),
        az_path=str(az_path) if az_path else None,
        command_timeout=timeout,
        json_logs=bool(merged["json_logs"]),
        log_level=(merged.get("log_level") or "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
        progress=bool(merged["progress"]),
    )
    return command, cfg


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "output_all": str(cfg.output_all),
        "output_summary": str(cfg.output_summary),
        "subscriptions": cfg.subscriptions,
        "skip_setup": cfg.skip_setup,
        "az_path": cfg.az_path,
        "command_timeout": cfg.command_timeout,
        "json_logs": cfg.json_logs,
        "log_level": cfg.log_level,
        "log_file": str(cfg.log_file) if cfg.log_file else None,
        "progress": cfg.progress,
    }
