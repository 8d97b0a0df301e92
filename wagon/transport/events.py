"""Synchronous fan-out of session and transfer events to registered listeners.

Listeners are invoked in registration order on the calling thread. A listener
that raises is not isolated: the exception reaches the caller of the operation
that fired the event, because the host owns listener correctness.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Generic, TypeVar

from wagon.domain.events import (
    DebugEvent,
    RequestType,
    SessionEvent,
    SessionEventType,
    SessionListener,
    TransferEvent,
    TransferEventType,
    TransferListener,
)
from wagon.domain.repository import Resource

L = TypeVar("L")


class _ListenerRegistry(Generic[L]):
    def __init__(self) -> None:
        self._listeners: list[L] = []

    def add(self, listener: L) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: L) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def has(self, listener: L) -> bool:
        return listener in self._listeners

    def snapshot(self) -> tuple[L, ...]:
        return tuple(self._listeners)

    def dispatch(self, event: Any) -> None:
        for listener in self.snapshot():
            listener(event)


class SessionEventSupport:
    """Dispatches session lifecycle events."""

    def __init__(self, source: Any) -> None:
        self._source = source
        self._registry: _ListenerRegistry[SessionListener] = _ListenerRegistry()

    def add_listener(self, listener: SessionListener) -> None:
        self._registry.add(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        self._registry.remove(listener)

    def has_listener(self, listener: SessionListener) -> bool:
        return self._registry.has(listener)

    def fire(
        self, event_type: SessionEventType, exception: BaseException | None = None
    ) -> SessionEvent:
        event = SessionEvent(source=self._source, type=event_type, exception=exception)
        self._registry.dispatch(event)
        return event

    def fire_opening(self) -> SessionEvent:
        return self.fire(SessionEventType.OPENING)

    def fire_opened(self) -> SessionEvent:
        return self.fire(SessionEventType.OPENED)

    def fire_disconnecting(self) -> SessionEvent:
        return self.fire(SessionEventType.DISCONNECTING)

    def fire_disconnected(self) -> SessionEvent:
        return self.fire(SessionEventType.DISCONNECTED)

    def fire_connection_refused(self) -> SessionEvent:
        return self.fire(SessionEventType.CONNECTION_REFUSED)

    def fire_logged_in(self) -> SessionEvent:
        return self.fire(SessionEventType.LOGGED_IN)

    def fire_logged_off(self) -> SessionEvent:
        return self.fire(SessionEventType.LOGGED_OFF)

    def fire_error(self, exception: BaseException) -> SessionEvent:
        return self.fire(SessionEventType.ERROR, exception)

    def fire_debug(self, message: str) -> DebugEvent:
        event = DebugEvent(source=self._source, message=message)
        self._registry.dispatch(event)
        return event


class TransferEventSupport:
    """Dispatches transfer lifecycle events."""

    def __init__(self, source: Any) -> None:
        self._source = source
        self._registry: _ListenerRegistry[TransferListener] = _ListenerRegistry()

    def add_listener(self, listener: TransferListener) -> None:
        self._registry.add(listener)

    def remove_listener(self, listener: TransferListener) -> None:
        self._registry.remove(listener)

    def has_listener(self, listener: TransferListener) -> bool:
        return self._registry.has(listener)

    def fire(
        self,
        event_type: TransferEventType,
        request_type: RequestType,
        resource: Resource,
        local_file: Path | None = None,
        *,
        exception: BaseException | None = None,
        bytes_transferred: int | None = None,
    ) -> TransferEvent:
        event = TransferEvent(
            source=self._source,
            resource=resource,
            type=event_type,
            request_type=request_type,
            local_file=local_file,
            exception=exception,
            bytes_transferred=bytes_transferred,
        )
        self._registry.dispatch(event)
        return event

    def fire_initiated(
        self, request_type: RequestType, resource: Resource, local_file: Path
    ) -> TransferEvent:
        return self.fire(TransferEventType.INITIATED, request_type, resource, local_file)

    def fire_started(
        self, request_type: RequestType, resource: Resource, local_file: Path
    ) -> TransferEvent:
        return self.fire(TransferEventType.STARTED, request_type, resource, local_file)

    def fire_progress(
        self,
        request_type: RequestType,
        resource: Resource,
        local_file: Path,
        bytes_transferred: int,
    ) -> TransferEvent:
        return self.fire(
            TransferEventType.PROGRESS,
            request_type,
            resource,
            local_file,
            bytes_transferred=bytes_transferred,
        )

    def fire_completed(
        self, request_type: RequestType, resource: Resource, local_file: Path
    ) -> TransferEvent:
        return self.fire(TransferEventType.COMPLETED, request_type, resource, local_file)

    def fire_error(
        self,
        request_type: RequestType,
        resource: Resource,
        local_file: Path,
        exception: BaseException,
    ) -> TransferEvent:
        return self.fire(
            TransferEventType.ERROR,
            request_type,
            resource,
            local_file,
            exception=exception,
        )

    def fire_debug(self, message: str) -> DebugEvent:
        event = DebugEvent(source=self._source, message=message)
        self._registry.dispatch(event)
        return event
