import time

from prometheus_client import Counter, Histogram

from wagon.domain.events import DebugEvent, TransferEvent, TransferEventType

# request label is "get" or "put"; keys and bucket names stay out of labels
TRANSFERS = Counter(
    "wagon_transfers_total",
    "Completed transfers by outcome",
    ["request", "outcome"],
)

TRANSFER_BYTES = Counter(
    "wagon_transfer_bytes_total",
    "Bytes moved by transfers",
    ["request"],
)

TRANSFER_LATENCY = Histogram(
    "wagon_transfer_duration_seconds",
    "Transfer duration from start to completion in seconds",
    ["request"],
)


class TransferMetricsListener:
    """Transfer listener feeding the Prometheus transfer collectors."""

    def __init__(self) -> None:
        self._started: dict[tuple[str, str], float] = {}
        self._failed: set[tuple[str, str]] = set()

    def __call__(self, event: TransferEvent | DebugEvent) -> None:
        if not isinstance(event, TransferEvent):
            return

        request = event.request_type.value
        slot = (request, event.resource.name)

        if event.type is TransferEventType.STARTED:
            self._started[slot] = time.perf_counter()
            self._failed.discard(slot)
        elif event.type is TransferEventType.PROGRESS:
            if event.bytes_transferred:
                TRANSFER_BYTES.labels(request=request).inc(event.bytes_transferred)
        elif event.type is TransferEventType.ERROR:
            self._failed.add(slot)
        elif event.type is TransferEventType.COMPLETED:
            outcome = "failure" if slot in self._failed else "success"
            self._failed.discard(slot)
            TRANSFERS.labels(request=request, outcome=outcome).inc()
            started = self._started.pop(slot, None)
            if started is not None:
                TRANSFER_LATENCY.labels(request=request).observe(
                    time.perf_counter() - started
                )
