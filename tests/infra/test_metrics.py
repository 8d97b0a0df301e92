from __future__ import annotations

from pathlib import Path

from prometheus_client import REGISTRY

from wagon.domain.events import (
    DebugEvent,
    RequestType,
    TransferEvent,
    TransferEventType,
)
from wagon.domain.repository import Resource
from wagon.infra.observability.metrics import TransferMetricsListener


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _event(event_type: TransferEventType, *, bytes_transferred=None, exception=None):
    return TransferEvent(
        source=object(),
        resource=Resource("org/a/1.0/a.jar"),
        type=event_type,
        request_type=RequestType.GET,
        local_file=Path("a.jar"),
        exception=exception,
        bytes_transferred=bytes_transferred,
    )


def test_successful_transfer_is_counted() -> None:
    listener = TransferMetricsListener()
    before_ok = _sample("wagon_transfers_total", request="get", outcome="success")
    before_bytes = _sample("wagon_transfer_bytes_total", request="get")
    before_obs = _sample("wagon_transfer_duration_seconds_count", request="get")

    listener(_event(TransferEventType.INITIATED))
    listener(_event(TransferEventType.STARTED))
    listener(_event(TransferEventType.PROGRESS, bytes_transferred=4))
    listener(_event(TransferEventType.PROGRESS, bytes_transferred=3))
    listener(_event(TransferEventType.COMPLETED))

    assert _sample("wagon_transfers_total", request="get", outcome="success") == before_ok + 1
    assert _sample("wagon_transfer_bytes_total", request="get") == before_bytes + 7
    assert _sample("wagon_transfer_duration_seconds_count", request="get") == before_obs + 1


def test_failed_transfer_is_counted_as_failure() -> None:
    listener = TransferMetricsListener()
    before_fail = _sample("wagon_transfers_total", request="get", outcome="failure")
    before_ok = _sample("wagon_transfers_total", request="get", outcome="success")

    listener(_event(TransferEventType.STARTED))
    listener(_event(TransferEventType.ERROR, exception=RuntimeError("boom")))
    listener(_event(TransferEventType.COMPLETED))

    assert _sample("wagon_transfers_total", request="get", outcome="failure") == before_fail + 1
    assert _sample("wagon_transfers_total", request="get", outcome="success") == before_ok


def test_completed_without_start_skips_latency() -> None:
    listener = TransferMetricsListener()
    before_obs = _sample("wagon_transfer_duration_seconds_count", request="get")

    listener(_event(TransferEventType.COMPLETED))

    assert _sample("wagon_transfer_duration_seconds_count", request="get") == before_obs


def test_debug_messages_are_ignored() -> None:
    listener = TransferMetricsListener()
    before_ok = _sample("wagon_transfers_total", request="get", outcome="success")

    listener(DebugEvent(source=None, message="retrying part 3"))

    assert _sample("wagon_transfers_total", request="get", outcome="success") == before_ok
