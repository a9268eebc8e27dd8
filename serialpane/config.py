from __future__ import annotations

import argparse
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from serialpane.scroll import DEFAULT_HISTORY_LINES
from serialpane.sources import DEFAULT_BAUD, DEFAULT_TIMEOUT_S


@dataclass
class MonitorConfig:
    port: Optional[str] = None  # None -> first detected port
    baud: int = DEFAULT_BAUD
    timeout_s: float = DEFAULT_TIMEOUT_S
    history_lines: int = DEFAULT_HISTORY_LINES  # per pane, 0 = unbounded
    replay: Optional[Path] = None
    replay_rate_hz: float = 20.0
    events_file: Optional[Path] = None


# Keys accepted from a YAML file (replay is CLI-only).
FILE_KEYS = ("port", "baud", "timeout_s", "history_lines", "replay_rate_hz", "events_file")


def _as_int(key: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"{key} must be an integer, got {v!r}")
    return v


def _as_float(key: str, v: Any) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError(f"{key} must be a number, got {v!r}")
    return float(v)


def _validate(cfg: MonitorConfig) -> MonitorConfig:
    if cfg.baud <= 0:
        raise ValueError(f"baud must be positive, got {cfg.baud}")
    if cfg.timeout_s <= 0:
        raise ValueError(f"timeout_s must be positive, got {cfg.timeout_s}")
    if cfg.history_lines < 0:
        raise ValueError(f"history_lines must be >= 0, got {cfg.history_lines}")
    return cfg


def load_config(path: Path) -> MonitorConfig:
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"{path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")

    unknown = sorted(set(data) - set(FILE_KEYS), key=str)
    if unknown:
        raise ValueError(f"{path}: unknown keys: {', '.join(map(str, unknown))}")

    cfg = MonitorConfig()
    if data.get("port") is not None:
        cfg.port = str(data["port"])
    if "baud" in data:
        cfg.baud = _as_int("baud", data["baud"])
    if "timeout_s" in data:
        cfg.timeout_s = _as_float("timeout_s", data["timeout_s"])
    if "history_lines" in data:
        cfg.history_lines = _as_int("history_lines", data["history_lines"])
    if "replay_rate_hz" in data:
        cfg.replay_rate_hz = _as_float("replay_rate_hz", data["replay_rate_hz"])
    if data.get("events_file") is not None:
        cfg.events_file = Path(str(data["events_file"])).expanduser()
    return _validate(cfg)


def build_parser() -> argparse.ArgumentParser:
    # Defaults are None so only flags actually given override the config file.
    parser = argparse.ArgumentParser(description="Two-pane serial monitor (curses TUI)")
    parser.add_argument("--port", default=None, help="Serial port (first detected port if omitted)")
    parser.add_argument("--baud", type=int, default=None, help=f"Baud rate (default {DEFAULT_BAUD})")
    parser.add_argument("--timeout", dest="timeout_s", type=float, default=None, help="Read timeout in seconds")
    parser.add_argument("--history", dest="history_lines", type=int, default=None, help="Lines kept per pane (0 = unbounded)")
    parser.add_argument("--replay", type=Path, default=None, help="Replay a raw log file instead of a device")
    parser.add_argument("--replay-rate-hz", type=float, default=None, help="Replay rate in lines per second")
    parser.add_argument("--events-file", type=Path, default=None, help="Append host events to this file")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    return parser


def resolve_config(args: argparse.Namespace) -> MonitorConfig:
    cfg = load_config(args.config) if args.config is not None else MonitorConfig()
    overrides = {
        f.name: getattr(args, f.name)
        for f in fields(MonitorConfig)
        if getattr(args, f.name, None) is not None
    }
    return _validate(replace(cfg, **overrides))
