"""Broker selection for the sync actor.

Dramatiq binds an actor to the global broker when the actor is declared, so
:mod:`mcpindex.jobs.actor` calls :func:`ensure_broker_configured` before it
decorates :func:`~mcpindex.jobs.actor.sync_registry_job`.

A deployment installs its real broker (for example with ``dramatiq.set_broker``
in its worker entry module) before importing the actor. Local runs and the
test suite use an in-memory :class:`~dramatiq.brokers.stub.StubBroker`
instead.
"""

from __future__ import annotations

import dataclasses as dc
import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_PYTEST_ENV_VARS = ("PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER")

_lock = threading.Lock()
_configured = False


class BrokerUnavailableError(RuntimeError):
    """Raised when no broker is installed and the stub is not allowed."""

    def __init__(self) -> None:
        super().__init__(
            "No Dramatiq broker is installed for the sync actor. Install one "
            "before importing mcpindex.jobs.actor, or set "
            "MCPINDEX_ALLOW_STUB_BROKER=1 for local runs."
        )


@dc.dataclass(frozen=True, slots=True)
class BrokerSettings:
    """How the sync actor's broker is chosen.

    Attributes
    ----------
    allow_stub
        ``MCPINDEX_ALLOW_STUB_BROKER`` is truthy.
    under_tests
        The process is a pytest run.

    """

    allow_stub: bool = False
    under_tests: bool = False

    @classmethod
    def from_env(cls) -> BrokerSettings:
        """Read settings from the environment and the loaded modules."""
        raw = os.environ.get("MCPINDEX_ALLOW_STUB_BROKER", "")
        return cls(
            allow_stub=raw.strip().lower() in _TRUTHY,
            under_tests="pytest" in sys.modules
            or any(name in os.environ for name in _PYTEST_ENV_VARS),
        )

    @property
    def use_stub(self) -> bool:
        """Return True when the in-memory broker should be installed."""
        return self.allow_stub or self.under_tests


def ensure_broker_configured(settings: BrokerSettings | None = None) -> None:
    """Install the stub broker or confirm a real one, once per process.

    Raises
    ------
    BrokerUnavailableError
        If the stub is not allowed and Dramatiq cannot provide a broker.

    """
    global _configured

    with _lock:
        if _configured:
            return
        resolved = settings or BrokerSettings.from_env()
        if resolved.use_stub:
            dramatiq.set_broker(StubBroker())
        else:
            try:
                dramatiq.get_broker()
            except (ImportError, LookupError) as exc:
                # ImportError: the default RabbitMQ client is not installed.
                raise BrokerUnavailableError from exc
        _configured = True
