"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in plain and JSON modes
- Routing of ``logging`` records through the manager
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from ccprofile import output as output_module
from ccprofile.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    configure_logging,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("ccprofile.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("ccprofile.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("work")
        captured = capfd.readouterr()
        assert captured.out == "work\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("hello there")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "hello there" in captured.err

    def test_prefixes(self, capfd, non_tty):
        mgr = OutputManager(no_color=True)
        mgr.warning("w")
        mgr.error("e")
        mgr.suggest("s")
        err = capfd.readouterr().err.splitlines()
        assert err == ["Warning: w", "Error: e", "→ s"]


class TestQuietVerbose:
    def test_quiet_hides_info_success_suggest(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("i")
        mgr.success("s")
        mgr.suggest("g")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_and_errors(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.warning("careful")
        mgr.error("broken")
        err = capfd.readouterr().err
        assert "careful" in err and "broken" in err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "[debug] shown" in err


class TestPrintTable:
    def test_plain_is_tab_separated(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["Profile", "Type"], [["work", "console"], ["home", "subscription"]])
        assert capfd.readouterr().out.splitlines() == [
            "Profile\tType",
            "work\tconsole",
            "home\tsubscription",
        ]

    def test_json_is_list_of_objects(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Alias", "Profile"], [["w", "work"]])
        assert json.loads(capfd.readouterr().out) == [{"Alias": "w", "Profile": "work"}]


class TestLogging:
    def test_debug_records_shown_when_verbose(self, capfd, non_tty):
        set_output(OutputManager(no_color=True, verbose=True))
        configure_logging(verbose=True)
        logging.getLogger("ccprofile.profiles.store").debug("reading %s", "work")
        assert "reading work" in capfd.readouterr().err

    def test_debug_records_hidden_by_default(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        configure_logging(verbose=False)
        logging.getLogger("ccprofile.profiles.store").debug("reading %s", "work")
        logging.getLogger("ccprofile.audit").warning("audit broke")
        err = capfd.readouterr().err
        assert "reading work" not in err
        assert "Warning: audit broke" in err

    def test_configure_is_idempotent(self):
        configure_logging(verbose=False)
        configure_logging(verbose=True)
        handlers = [
            h for h in logging.getLogger("ccprofile").handlers
            if isinstance(h, output_module.OutputLogHandler)
        ]
        assert len(handlers) == 1


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_module_helpers(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.print_data("data")
        output_module.info("note")
        captured = capfd.readouterr()
        assert captured.out == "data\n"
        assert "note" in captured.err
