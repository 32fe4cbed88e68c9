"""Presentation sink protocol — observer for sync outcomes."""

from abc import ABC, abstractmethod
from enum import Enum

import structlog

logger = structlog.get_logger().bind(source="sink")


class SyncStatus(str, Enum):
    SYNCED = "synced"
    CONFLICTS = "conflicts"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


class PresentationSink(ABC):
    """Receives terminal sync outcomes. Never mutates engine state."""

    @abstractmethod
    def notify(self, status: SyncStatus, detail: str = "") -> None:
        """Handle one sync outcome."""


class LoggingSink(PresentationSink):
    """Default sink: outcomes only go to the log."""

    def notify(self, status: SyncStatus, detail: str = "") -> None:
        logger.info("sync.outcome", status=status.value, detail=detail)
