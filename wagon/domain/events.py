"""Typed session and transfer notifications.

Events are immutable and never retained by the notifier; listeners receive
them synchronously on the calling thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from wagon.domain.repository import Resource


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionEventType(str, Enum):
    OPENING = "opening"
    OPENED = "opened"
    DISCONNECTING = "disconnecting"
    DISCONNECTED = "disconnected"
    CONNECTION_REFUSED = "connection_refused"
    LOGGED_IN = "logged_in"
    LOGGED_OFF = "logged_off"
    ERROR = "error"


class TransferEventType(str, Enum):
    INITIATED = "initiated"
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETED = "completed"
    ERROR = "error"


class RequestType(str, Enum):
    GET = "get"
    PUT = "put"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    source: Any
    type: SessionEventType
    exception: BaseException | None = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, slots=True)
class TransferEvent:
    source: Any
    resource: Resource
    type: TransferEventType
    request_type: RequestType
    local_file: Path | None = None
    exception: BaseException | None = None
    # only set on PROGRESS events
    bytes_transferred: int | None = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, slots=True)
class DebugEvent:
    """Free-form diagnostic message sent to session or transfer listeners."""

    source: Any
    message: str
    timestamp: datetime = field(default_factory=_utcnow)


SessionListener = Callable[[SessionEvent | DebugEvent], None]
TransferListener = Callable[[TransferEvent | DebugEvent], None]
