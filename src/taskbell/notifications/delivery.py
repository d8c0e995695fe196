# src/taskbell/notifications/delivery.py

from __future__ import annotations

"""
Best-effort delivery attempts.

Every channel (persist, email, live push) is wrapped by `attempt()`, which never
raises: the result is a DeliveryOutcome that the caller logs and reports.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class DeliveryChannel(str, Enum):
    PERSIST = "persist"
    EMAIL = "email"
    LIVE = "live"


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class DeliveryOutcome:
    channel: DeliveryChannel
    status: DeliveryStatus
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED

    @classmethod
    def skipped(cls, channel: DeliveryChannel, reason: str) -> DeliveryOutcome:
        return cls(channel=channel, status=DeliveryStatus.SKIPPED, detail=reason)


def attempt(channel: DeliveryChannel, fn: Callable[[], object], *, context: str = "") -> DeliveryOutcome:
    """Run one channel delivery; any exception becomes a FAILED outcome (logged with traceback)."""
    try:
        fn()
    except Exception as e:
        logger.warning("Delivery via %s failed %s: %r", channel.value, context, e, exc_info=True)
        return DeliveryOutcome(channel=channel, status=DeliveryStatus.FAILED, detail=repr(e))
    return DeliveryOutcome(channel=channel, status=DeliveryStatus.DELIVERED)
