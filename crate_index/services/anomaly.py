"""
Operator-facing anomaly reporting.

Anomalies are data-consistency problems that callers never see (they get a
plain "not found") but that someone has to clean up in the database.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

logger = logging.getLogger(__name__)

ANOMALY_LOGGER_NAME = "crate_index.anomalies"


class Severity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def log_level(self) -> int:
        return {
            Severity.DEBUG: logging.DEBUG,
            Severity.INFO: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.ERROR: logging.ERROR,
            Severity.FATAL: logging.CRITICAL,
        }[self]


class AnomalySink(ABC):
    """
    Abstract destination for anomaly messages.
    """

    @abstractmethod
    def capture_message(self, message: str, severity: Severity) -> None:
        """Record a human-readable anomaly message at the given severity."""
        pass


class LoggingAnomalySink(AnomalySink):
    """
    Writes anomalies to a dedicated logger so they can be routed to alerting
    separately from the regular application log.
    """

    def __init__(self, logger_name: str = ANOMALY_LOGGER_NAME):
        self._logger = logging.getLogger(logger_name)

    def capture_message(self, message: str, severity: Severity) -> None:
        self._logger.log(severity.log_level, message)


def report_anomaly(sink: AnomalySink, message: str, severity: Severity = Severity.WARNING) -> None:
    """
    Fire-and-forget delivery: a failing sink is logged and never propagates
    into the lookup that raised the anomaly.
    """
    try:
        sink.capture_message(message, severity)
    except Exception as e:
        logger.error(f"Failed to deliver anomaly '{message}': {e}", exc_info=True)
