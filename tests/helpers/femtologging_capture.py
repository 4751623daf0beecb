"""Capture femtologging output for sync event assertions."""

from __future__ import annotations

import contextlib
import dataclasses
import threading
import typing as typ

from femtologging import get_logger


@dataclasses.dataclass(frozen=True, slots=True)
class CapturedRecord:
    """One record delivered by the femtologging worker thread."""

    level: str
    message: str
    exc_info: object | None = None


class RecordCollector:
    """Handler collecting records as femtologging delivers them.

    Records arrive on femtologging's worker thread, so readers call
    :meth:`wait_for_count` before inspecting :attr:`records`.
    """

    def __init__(self) -> None:
        self.records: list[CapturedRecord] = []
        self._arrived = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Collect a plain ``(logger, level, message)`` delivery."""
        del logger
        self._collect(CapturedRecord(level=str(level), message=message))

    def handle_record(self, record: dict[str, object]) -> None:
        """Collect a structured delivery, keeping any exception payload."""
        self._collect(
            CapturedRecord(
                level=str(record.get("level", "")),
                message=str(record.get("message", "")),
                exc_info=record.get("exc_info"),
            )
        )

    def _collect(self, record: CapturedRecord) -> None:
        with self._arrived:
            self.records.append(record)
            self._arrived.notify_all()

    def wait_for_count(self, count: int, timeout: float = 1.0) -> None:
        """Block until ``count`` records arrived, failing after ``timeout``."""
        with self._arrived:
            self._arrived.wait_for(lambda: len(self.records) >= count, timeout)
        assert len(self.records) >= count, (
            f"expected {count} records, got {len(self.records)}"
        )


@contextlib.contextmanager
def capture_femto_logs(logger_name: str) -> typ.Iterator[RecordCollector]:
    """Route every record of ``logger_name`` to a fresh collector."""
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate
    collector = RecordCollector()

    logger.set_level("TRACE")
    logger.set_propagate(False)
    logger.add_handler(collector)
    try:
        yield collector
    finally:
        logger.remove_handler(collector)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
