"""Tests for serialpane.config"""
import sys
from pathlib import Path

import pytest

from serialpane import monitor
from serialpane.config import MonitorConfig, build_parser, load_config, resolve_config


def _write(tmp_path, text):
    p = tmp_path / "serialpane.yaml"
    p.write_text(text, encoding="utf-8")
    return p


class TestLoadConfig:
    def test_defaults(self):
        cfg = MonitorConfig()
        assert cfg.baud == 115200
        assert cfg.timeout_s == 1.0
        assert cfg.port is None

    def test_empty_file(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == MonitorConfig()

    def test_values(self, tmp_path):
        cfg = load_config(
            _write(
                tmp_path,
                "port: /dev/ttyACM0\nbaud: 9600\ntimeout_s: 0.5\nhistory_lines: 0\nevents_file: ev.txt\n",
            )
        )
        assert cfg.port == "/dev/ttyACM0"
        assert cfg.baud == 9600
        assert cfg.timeout_s == 0.5
        assert cfg.history_lines == 0
        assert cfg.events_file == Path("ev.txt")

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ValueError, match="unknown keys: colour"):
            load_config(_write(tmp_path, "colour: red\n"))

    def test_bad_type(self, tmp_path):
        with pytest.raises(ValueError, match="baud"):
            load_config(_write(tmp_path, "baud: fast\n"))

    def test_bad_value(self, tmp_path):
        with pytest.raises(ValueError, match="timeout_s"):
            load_config(_write(tmp_path, "timeout_s: 0\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_bad_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="serialpane.yaml"):
            load_config(_write(tmp_path, "baud: [1,\n"))

    def test_mixed_key_types(self, tmp_path):
        with pytest.raises(ValueError, match="unknown keys: 1, foo"):
            load_config(_write(tmp_path, "1: x\nfoo: y\n"))


class TestResolveConfig:
    def test_cli_overrides_file(self, tmp_path):
        path = _write(tmp_path, "baud: 9600\nport: /dev/ttyS0\n")
        args = build_parser().parse_args(["--config", str(path), "--baud", "57600"])
        cfg = resolve_config(args)
        assert cfg.baud == 57600
        assert cfg.port == "/dev/ttyS0"

    def test_no_config_file(self):
        args = build_parser().parse_args(["--replay", "run_raw.log", "--history", "50"])
        cfg = resolve_config(args)
        assert cfg.replay == Path("run_raw.log")
        assert cfg.history_lines == 50
        assert cfg.baud == 115200

    def test_cli_value_validated(self):
        args = build_parser().parse_args(["--history", "-1"])
        with pytest.raises(ValueError):
            resolve_config(args)


class TestMainStartup:
    @pytest.mark.parametrize("text", ["baud: [1,\n", "1: x\nfoo: y\n", "baud: fast\n"])
    def test_bad_config_exits_cleanly(self, tmp_path, monkeypatch, text):
        path = _write(tmp_path, text)
        monkeypatch.setattr(sys, "argv", ["serialpane", "--config", str(path)])
        with pytest.raises(SystemExit, match="Bad config"):
            monitor.main()
