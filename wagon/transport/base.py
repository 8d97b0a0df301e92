from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from wagon.common.config import Settings, get_settings
from wagon.domain.events import SessionListener, TransferListener
from wagon.domain.repository import (
    AuthenticationInfo,
    ProxyInfo,
    ProxyInfoProvider,
    Repository,
    RepositoryPermissions,
)
from wagon.infra.storage.client import ObjectSummary
from wagon.transport.events import SessionEventSupport, TransferEventSupport


class WagonError(Exception):
    """Base class for transport level exceptions."""


class ConnectionFailedError(WagonError):
    """Raised when a session cannot be opened or closed."""


class AuthenticationFailedError(WagonError):
    """Raised when the supplied identity cannot be turned into credentials."""


class TransferFailedError(WagonError):
    """Raised when a get or put must be aborted."""


class ResourceDoesNotExistError(WagonError):
    """Raised when a path is absent and the operation treats that as an error."""


class UnsupportedOperationError(WagonError, NotImplementedError):
    """Raised by capabilities the transport deliberately does not provide."""


class InvalidArgumentError(WagonError, ValueError):
    """Raised when a required argument is missing or malformed."""


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class Transport(ABC):
    """Capability set shared by every repository transport.

    Holds the session state, listener registries and the timeout, interactive
    and permission configuration. Subclasses provide the protocol specific
    connection handling and transfers.
    """

    def __init__(self, *, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._state = SessionState.DISCONNECTED
        self._state_lock = threading.RLock()
        self._repository: Repository | None = None
        self._authentication_info: AuthenticationInfo | None = None
        self._proxy_info_provider: ProxyInfoProvider | None = None
        self._permissions_override: RepositoryPermissions | None = None
        self._connection_timeout = self._settings.WAGON_CONNECTION_TIMEOUT
        self._read_timeout = self._settings.WAGON_READ_TIMEOUT
        self._interactive = self._settings.WAGON_INTERACTIVE
        self.session_events = SessionEventSupport(self)
        self.transfer_events = TransferEventSupport(self)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def repository(self) -> Repository | None:
        return self._repository

    @property
    def authentication_info(self) -> AuthenticationInfo | None:
        return self._authentication_info

    @abstractmethod
    def connect(
        self,
        repository: Repository,
        authentication_info: AuthenticationInfo | None = None,
        proxy: ProxyInfo | ProxyInfoProvider | None = None,
    ) -> None:
        ...

    @abstractmethod
    def disconnect(self) -> None:
        ...

    @abstractmethod
    def get(self, resource_name: str, destination: Path) -> None:
        ...

    @abstractmethod
    def put(self, source: Path, destination: str) -> None:
        ...

    @abstractmethod
    def get_file_list(self, destination_directory: str) -> list[str]:
        ...

    def get_if_newer(
        self, resource_name: str, destination: Path, timestamp: float
    ) -> bool:
        raise UnsupportedOperationError(
            f"{type(self).__name__} has not implemented get_if_newer()"
        )

    def put_directory(self, source_directory: Path, destination_directory: str) -> None:
        raise UnsupportedOperationError(
            f"{type(self).__name__} has not implemented put_directory()"
        )

    def resource_exists(self, resource_name: str) -> bool:
        raise UnsupportedOperationError(
            f"{type(self).__name__} has not implemented resource_exists()"
        )

    def list_objects(self) -> dict[str, ObjectSummary]:
        raise UnsupportedOperationError(
            f"{type(self).__name__} has not implemented list_objects()"
        )

    def supports_directory_copy(self) -> bool:
        return False

    # listener registration

    def add_session_listener(self, listener: SessionListener) -> None:
        self.session_events.add_listener(listener)

    def remove_session_listener(self, listener: SessionListener) -> None:
        self.session_events.remove_listener(listener)

    def has_session_listener(self, listener: SessionListener) -> bool:
        return self.session_events.has_listener(listener)

    def add_transfer_listener(self, listener: TransferListener) -> None:
        self.transfer_events.add_listener(listener)

    def remove_transfer_listener(self, listener: TransferListener) -> None:
        self.transfer_events.remove_listener(listener)

    def has_transfer_listener(self, listener: TransferListener) -> bool:
        return self.transfer_events.has_listener(listener)

    def fire_session_debug(self, message: str) -> None:
        self.session_events.fire_debug(message)

    def fire_transfer_debug(self, message: str) -> None:
        self.transfer_events.fire_debug(message)

    # configuration accessors

    @property
    def timeout(self) -> int:
        """Connection timeout in milliseconds."""
        return self._connection_timeout

    @timeout.setter
    def timeout(self, value: int) -> None:
        self._connection_timeout = int(value)

    @property
    def read_timeout(self) -> int:
        """Socket read timeout in milliseconds."""
        return self._read_timeout

    @read_timeout.setter
    def read_timeout(self, value: int) -> None:
        self._read_timeout = int(value)

    @property
    def interactive(self) -> bool:
        return self._interactive

    @interactive.setter
    def interactive(self, value: bool) -> None:
        self._interactive = bool(value)

    @property
    def permissions_override(self) -> RepositoryPermissions | None:
        return self._permissions_override

    @permissions_override.setter
    def permissions_override(self, value: RepositoryPermissions | None) -> None:
        self._permissions_override = value

    @property
    def proxy_info(self) -> ProxyInfo | None:
        if self._proxy_info_provider is None:
            return None
        return self._proxy_info_provider(None)

    def proxy_info_for(self, protocol: str) -> ProxyInfo | None:
        if self._proxy_info_provider is None:
            return None
        return self._proxy_info_provider(protocol)

    # helpers for subclasses

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            self._state = state

    def _require_connected(self) -> Repository:
        with self._state_lock:
            if self._state is not SessionState.CONNECTED or self._repository is None:
                raise TransferFailedError(
                    f"Transport is not connected (state={self._state.value})"
                )
            return self._repository
