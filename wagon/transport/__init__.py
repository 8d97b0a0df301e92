from .base import (
    AuthenticationFailedError,
    ConnectionFailedError,
    InvalidArgumentError,
    ResourceDoesNotExistError,
    SessionState,
    TransferFailedError,
    Transport,
    UnsupportedOperationError,
    WagonError,
)
from .events import SessionEventSupport, TransferEventSupport
from .keys import normalize_base_dir, object_key
from .listing import list_all_objects
from .registry import (
    available_schemes,
    create_transport,
    get_transport_class,
    register_transport,
    unregister_transport,
)
from .s3_wagon import (
    Failure,
    Fetched,
    NotFound,
    S3Wagon,
    merge_repository_identity,
    resolve_credentials,
    resolve_region,
)

__all__ = [
    "AuthenticationFailedError",
    "ConnectionFailedError",
    "Failure",
    "Fetched",
    "InvalidArgumentError",
    "NotFound",
    "ResourceDoesNotExistError",
    "S3Wagon",
    "SessionEventSupport",
    "SessionState",
    "TransferEventSupport",
    "TransferFailedError",
    "Transport",
    "UnsupportedOperationError",
    "WagonError",
    "available_schemes",
    "create_transport",
    "get_transport_class",
    "list_all_objects",
    "merge_repository_identity",
    "normalize_base_dir",
    "object_key",
    "register_transport",
    "resolve_credentials",
    "resolve_region",
    "unregister_transport",
]
