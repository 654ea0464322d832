"""Logging configuration tests."""

import logging

import pytest
import structlog

from referee.config import Settings
from referee.logging_config import (
    bind_context,
    bind_round,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    tournament_context,
    unbind_context,
)


class TestConfigureLogging:
    def teardown_method(self):
        clear_context()
        structlog.reset_defaults()

    def test_sets_level_and_quiets_transport_loggers(self):
        configure_logging(log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("tenacity").level == logging.WARNING
        assert len(logging.getLogger().handlers) == 1

    def test_json_lines_carry_tournament_context(self, capsys):
        configure_logging(log_level="INFO", app_env="production")

        with tournament_context("t-123"):
            bind_round(2, "Final")
            get_logger("referee.test").info("tournament_match", winner="Bot1")

        out = capsys.readouterr().out
        assert '"event": "tournament_match"' in out
        assert '"tournament_id": "t-123"' in out
        assert '"round_name": "Final"' in out

    def test_from_settings(self):
        configure_from_settings(Settings(_env_file=None, log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING


class TestTournamentContext:
    def teardown_method(self):
        clear_context()

    def test_keys_dropped_on_exit(self):
        bind_context(request_id="r1")

        with tournament_context("t-1") as tournament_id:
            bind_round(1, "Semifinal")
            assert tournament_id == "t-1"
            assert structlog.contextvars.get_contextvars() == {
                "request_id": "r1",
                "tournament_id": "t-1",
                "round": 1,
                "round_name": "Semifinal",
            }

        assert structlog.contextvars.get_contextvars() == {"request_id": "r1"}

    def test_keys_dropped_on_error(self):
        with pytest.raises(RuntimeError):
            with tournament_context("t-2"):
                raise RuntimeError("arbitrator down")

        assert structlog.contextvars.get_contextvars() == {}

    def test_unbind(self):
        bind_context(tournament_id="t1", round=1)
        unbind_context("round")
        assert structlog.contextvars.get_contextvars() == {"tournament_id": "t1"}
