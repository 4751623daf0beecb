"""Unit tests for the sync actor's broker selection."""

from __future__ import annotations

from unittest import mock

import pytest
from dramatiq.brokers.stub import StubBroker

from mcpindex.jobs import _broker
from mcpindex.jobs._broker import (
    BrokerSettings,
    BrokerUnavailableError,
    ensure_broker_configured,
)


@pytest.fixture(autouse=True)
def set_broker(monkeypatch: pytest.MonkeyPatch) -> mock.MagicMock:
    """Reset the once-per-process flag and intercept broker installs."""
    monkeypatch.setattr(_broker, "_configured", False)
    installer = mock.MagicMock()
    monkeypatch.setattr(_broker.dramatiq, "set_broker", installer)
    return installer


class TestBrokerSettings:
    """Tests for BrokerSettings.from_env."""

    @pytest.mark.parametrize("raw", ["1", "true", " YES ", "on"])
    def test_truthy_flag_allows_stub(
        self, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        """Truthy MCPINDEX_ALLOW_STUB_BROKER values allow the stub."""
        monkeypatch.setenv("MCPINDEX_ALLOW_STUB_BROKER", raw)

        assert BrokerSettings.from_env().allow_stub

    def test_pytest_run_is_detected(self) -> None:
        """The test suite itself always counts as a pytest run."""
        settings = BrokerSettings.from_env()

        assert settings.under_tests, "pytest is loaded"
        assert settings.use_stub, "tests use the stub broker"

    def test_production_defaults_refuse_stub(self) -> None:
        """Without the flag or pytest, the stub is not used."""
        assert not BrokerSettings().use_stub


class TestEnsureBrokerConfigured:
    """Tests for ensure_broker_configured."""

    def test_installs_stub_once(self, set_broker: mock.MagicMock) -> None:
        """The stub broker is installed on the first call only."""
        settings = BrokerSettings(allow_stub=True)

        ensure_broker_configured(settings)
        ensure_broker_configured(settings)

        set_broker.assert_called_once()
        assert isinstance(set_broker.call_args.args[0], StubBroker)

    def test_keeps_existing_real_broker(
        self, monkeypatch: pytest.MonkeyPatch, set_broker: mock.MagicMock
    ) -> None:
        """A broker installed by the deployment is left in place."""
        monkeypatch.setattr(_broker.dramatiq, "get_broker", mock.MagicMock())

        ensure_broker_configured(BrokerSettings())

        set_broker.assert_not_called()

    def test_missing_broker_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """No broker and no stub permission is a configuration error."""
        monkeypatch.setattr(
            _broker.dramatiq,
            "get_broker",
            mock.MagicMock(side_effect=ImportError("pika")),
        )

        with pytest.raises(BrokerUnavailableError, match="MCPINDEX_ALLOW_STUB"):
            ensure_broker_configured(BrokerSettings())

        assert not _broker._configured, "a later call may retry"  # noqa: SLF001
