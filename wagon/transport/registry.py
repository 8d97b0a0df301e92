from __future__ import annotations

from typing import Callable

from wagon.common.config import Settings, get_settings
from wagon.infra.observability.metrics import TransferMetricsListener
from wagon.transport.base import Transport, UnsupportedOperationError
from wagon.transport.s3_wagon import S3Wagon

TransportFactory = Callable[..., Transport]

_registry: dict[str, TransportFactory] = {}


def _scheme_of(url_or_scheme: str) -> str:
    scheme, sep, _ = url_or_scheme.partition("://")
    return (scheme if sep else url_or_scheme).strip().lower()


def register_transport(scheme: str, factory: TransportFactory) -> None:
    """Make ``factory`` the transport for repository URLs using ``scheme``."""
    key = _scheme_of(scheme)
    if not key:
        raise ValueError("scheme must not be empty")
    _registry[key] = factory


def unregister_transport(scheme: str) -> None:
    _registry.pop(_scheme_of(scheme), None)


def available_schemes() -> list[str]:
    return sorted(_registry)


def get_transport_class(scheme: str) -> TransportFactory:
    key = _scheme_of(scheme)
    try:
        return _registry[key]
    except KeyError:
        raise UnsupportedOperationError(
            f"No transport registered for scheme {key!r}"
        ) from None


def create_transport(
    url_or_scheme: str, *, settings: Settings | None = None
) -> Transport:
    """Instantiate the transport registered for a URL (or bare scheme).

    When metrics are enabled the transport reports to the Prometheus
    transfer collectors.
    """
    settings = settings or get_settings()
    factory = get_transport_class(url_or_scheme)
    transport = factory(settings=settings)
    if settings.ENABLE_METRICS:
        transport.add_transfer_listener(TransferMetricsListener())
    return transport


register_transport(S3Wagon.scheme, S3Wagon)
