"""Tests for console styling helpers."""

import io

from snapshot_harness import formatting as fmt
from snapshot_harness.reporting import make_reporter


class FakeTTY(io.StringIO):
    def isatty(self):
        return True


def test_style_enabled():
    assert fmt.red("x") == "\033[31mx\033[0m"
    assert fmt.style("x", fmt.BOLD, fmt.GREEN) == "\033[1m\033[32mx\033[0m"


def test_color_helpers():
    assert fmt.green("ok") == "\033[32mok\033[0m"
    assert fmt.blue("ok", enabled=False) == "ok"


def test_style_disabled():
    assert fmt.bold("x", enabled=False) == "x"
    assert fmt.gray("x", False) == "x"
    assert fmt.style("x") == "x"


def test_supports_color(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    assert fmt.supports_color(FakeTTY()) is True
    assert fmt.supports_color(io.StringIO()) is False
    assert fmt.supports_color(None) is False


def test_no_color_env(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    assert fmt.supports_color(FakeTTY()) is False


def test_make_reporter_detects_color(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    assert make_reporter(None, stream=FakeTTY()).color is True
    assert make_reporter(None, stream=io.StringIO()).color is False
    assert make_reporter(False, stream=FakeTTY()).color is False
