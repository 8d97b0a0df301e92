"""S3 repository transport.

This module maps repository-relative artifact names onto keys of one bucket
and moves single files in and out of it, announcing every step to the
registered session and transfer listeners.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from wagon.common.config import Settings
from wagon.common.logging import mask_secret
from wagon.domain import PATH_SEPARATOR
from wagon.domain.events import RequestType
from wagon.domain.repository import (
    AuthenticationInfo,
    ProxyInfo,
    ProxyInfoProvider,
    Repository,
    Resource,
    proxy_provider_for,
)
from wagon.infra.storage.client import (
    Credentials,
    ObjectNotFoundError,
    ObjectSummary,
    ProgressCallback,
    StorageClient,
    StorageError,
)
from wagon.infra.storage.s3_client import S3StorageClient
from wagon.transport.base import (
    AuthenticationFailedError,
    ConnectionFailedError,
    InvalidArgumentError,
    ResourceDoesNotExistError,
    SessionState,
    Transport,
    TransferFailedError,
)
from wagon.transport.keys import object_key
from wagon.transport.listing import list_all_objects

session_logger = logging.getLogger("wagon.session")
transfer_logger = logging.getLogger("wagon.transfer")

ClientFactory = Callable[..., StorageClient]

TEMPORARY_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class Fetched:
    """The object was downloaded and moved into place."""

    destination: Path


@dataclass(frozen=True, slots=True)
class NotFound:
    """The object key does not exist; nothing was written."""

    object_key: str


@dataclass(frozen=True, slots=True)
class Failure:
    """The download failed for a reason other than a missing key."""

    cause: Exception


FetchResult = Fetched | NotFound | Failure


def resolve_region(configured: str | None, default: str | None) -> str | None:
    """Pick the client region: explicit setting first, then the default.

    ``None`` leaves the choice to the backend's own resolution chain.
    """
    for candidate in (configured, default):
        if candidate and candidate.strip():
            return candidate.strip().lower()
    return None


def resolve_credentials(
    authentication_info: AuthenticationInfo | None,
) -> Credentials | None:
    """Turn an explicit identity into static credentials.

    Returns None when no user name is given, meaning the ambient provider
    chain must be used.

    Raises:
        AuthenticationFailedError: If a user name comes without a secret.
    """
    if authentication_info is None or not authentication_info.username:
        return None
    if not authentication_info.password:
        raise AuthenticationFailedError(
            f"No secret key supplied for access key "
            f"{mask_secret(authentication_info.username)}"
        )
    return Credentials(
        access_key=authentication_info.username,
        secret_key=authentication_info.password,
        session_token=authentication_info.session_token or None,
    )


def merge_repository_identity(
    repository: Repository, authentication_info: AuthenticationInfo | None
) -> AuthenticationInfo:
    """Fill a missing user name (and password) from the repository URL."""
    info = authentication_info or AuthenticationInfo()
    if info.username is None and repository.username is not None:
        password = info.password
        if password is None and repository.password is not None:
            password = repository.password
        info = replace(info, username=repository.username, password=password)
    return info


def _proxies_for(proxy: ProxyInfo | None) -> dict[str, str] | None:
    if proxy is None:
        return None
    url = proxy.to_url()
    return {"http": url, "https": url}


def _resolve_destination_path(basedir: str, destination_directory: str) -> Path:
    destination_directory = destination_directory.replace("\\", PATH_SEPARATOR)
    if destination_directory == ".":
        return Path(basedir)
    return Path(basedir) / destination_directory.lstrip(PATH_SEPARATOR)


class _ProgressRelay:
    """Progress callback that remembers the exception a listener raised.

    Backends wrap callback failures in their own errors; the transfer uses
    ``listener_error`` to re-raise the listener's exception unchanged.
    """

    def __init__(self, fire: ProgressCallback) -> None:
        self._fire = fire
        self.listener_error: Exception | None = None

    def __call__(self, bytes_transferred: int) -> None:
        try:
            self._fire(bytes_transferred)
        except Exception as exc:
            self.listener_error = exc
            raise


class S3Wagon(Transport):
    """Transport storing artifacts as objects of an S3 bucket.

    The repository host is the bucket; the base directory becomes the key
    prefix (see :func:`wagon.transport.keys.object_key`).
    """

    scheme = "s3"

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        region: str | None = None,
        client_factory: ClientFactory | None = None,
        flatten_base_dir: bool | None = None,
    ) -> None:
        super().__init__(settings=settings)
        self._region = region
        self._client_factory = client_factory or S3StorageClient
        self._flatten_base_dir = (
            self._settings.WAGON_FLATTEN_BASEDIR
            if flatten_base_dir is None
            else flatten_base_dir
        )
        self._client: StorageClient | None = None

    @property
    def region(self) -> str | None:
        return self._region

    @region.setter
    def region(self, value: str | None) -> None:
        self._region = value

    @property
    def client(self) -> StorageClient | None:
        return self._client

    # session lifecycle

    def connect(
        self,
        repository: Repository,
        authentication_info: AuthenticationInfo | None = None,
        proxy: ProxyInfo | ProxyInfoProvider | None = None,
    ) -> None:
        """Open a session against ``repository``.

        ``proxy`` is either a single ProxyInfo or a provider callable taking a
        protocol name. Reconnecting an open session replaces its client.

        Raises:
            InvalidArgumentError: If ``repository`` is None.
            AuthenticationFailedError: If the identity is incomplete.
            ConnectionFailedError: If the backend client cannot be built.
        """
        if repository is None:
            raise InvalidArgumentError("repository cannot be None")

        if self._permissions_override is not None:
            repository = repository.with_permissions(self._permissions_override)

        if isinstance(proxy, ProxyInfo):
            proxy_provider: ProxyInfoProvider | None = proxy_provider_for(proxy)
        else:
            proxy_provider = proxy

        with self._state_lock:
            self._repository = repository
            self._authentication_info = merge_repository_identity(
                repository, authentication_info
            )
            self._proxy_info_provider = proxy_provider
            self._set_state(SessionState.CONNECTING)

        try:
            self.session_events.fire_opening()
            try:
                self.open_connection()
            except (AuthenticationFailedError, ConnectionFailedError):
                self.session_events.fire_connection_refused()
                raise
        except Exception:
            try:
                self._close_connection()
            except ConnectionFailedError as close_exc:
                session_logger.warning(
                    "stale_client_close_failed error=%s", close_exc, exc_info=close_exc
                )
            self._set_state(SessionState.DISCONNECTED)
            raise

        self._set_state(SessionState.CONNECTED)
        session_logger.info(
            "session_opened bucket=%s basedir=%s region=%s",
            repository.host,
            repository.basedir,
            resolve_region(self._region, self._settings.S3_REGION) or "<default>",
            extra={"extra": {"bucket": repository.host, "basedir": repository.basedir}},
        )
        self.session_events.fire_opened()

    def open_connection(self) -> None:
        """Build a backend client for the current session and swap it in.

        The new client is fully constructed before the previous one is
        replaced, so the handle is never missing while the session is open.
        """
        with self._state_lock:
            if self._repository is None:
                raise ConnectionFailedError("connect() must be called first")

            credentials = resolve_credentials(self._authentication_info)
            region = resolve_region(self._region, self._settings.S3_REGION)
            proxy = self.proxy_info_for("https") or self.proxy_info_for("http")
            try:
                client = self._client_factory(
                    credentials=credentials,
                    region=region,
                    endpoint_url=self._settings.S3_ENDPOINT_URL,
                    addressing_style=self._settings.S3_ADDRESSING_STYLE,
                    connect_timeout_ms=self._connection_timeout,
                    read_timeout_ms=self._read_timeout,
                    proxies=_proxies_for(proxy),
                )
            except StorageError as exc:
                raise ConnectionFailedError(
                    f"Unable to create storage client for {self._repository.host}: {exc}"
                ) from exc

            previous, self._client = self._client, client

        if previous is not None:
            try:
                previous.close()
            except StorageError as exc:
                # the session already runs on the new client
                session_logger.warning(
                    "stale_client_close_failed error=%s", exc, exc_info=exc
                )

    def disconnect(self) -> None:
        """Close the session. Calling it on a closed session does nothing.

        Raises:
            ConnectionFailedError: If the backend client fails to close.
        """
        with self._state_lock:
            if self._state is SessionState.DISCONNECTED:
                session_logger.debug("session_already_disconnected")
                return
            self._set_state(SessionState.DISCONNECTING)

        self.session_events.fire_disconnecting()
        try:
            self._close_connection()
        except ConnectionFailedError as exc:
            self._set_state(SessionState.DISCONNECTED)
            session_logger.error("session_close_failed error=%s", exc)
            self.session_events.fire_error(exc)
            raise

        self._set_state(SessionState.DISCONNECTED)
        session_logger.info("session_closed")
        self.session_events.fire_disconnected()

    def _close_connection(self) -> None:
        with self._state_lock:
            client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except StorageError as exc:
            raise ConnectionFailedError(f"Failed to close storage client: {exc}") from exc

    # transfers

    def get(self, resource_name: str, destination: Path) -> None:
        """Download ``resource_name`` to ``destination``.

        The object lands in a ``.tmp`` sibling first and is then moved over
        the destination in one step. A missing object is not an error: the
        call returns without touching the destination.

        Raises:
            TransferFailedError: If not connected, the base directory is
                unset, or the download fails.
        """
        repository, client = self._require_session()
        self._check_base_dir(repository)
        destination = Path(destination)
        key = self.object_key(repository, resource_name)
        resource = Resource(resource_name)
        temporary = destination.with_name(destination.name + TEMPORARY_SUFFIX)

        self.transfer_events.fire_initiated(RequestType.GET, resource, destination)
        try:
            self.transfer_events.fire_started(RequestType.GET, resource, destination)
            result = self._fetch(
                client,
                repository.host,
                key,
                destination,
                temporary,
                self._progress(RequestType.GET, resource, destination),
            )
            if isinstance(result, Failure):
                transfer_logger.error(
                    "get_failed bucket=%s key=%s error=%s",
                    repository.host,
                    key,
                    result.cause,
                    exc_info=result.cause,
                    extra={"extra": {"bucket": repository.host, "key": key}},
                )
                self.transfer_events.fire_error(
                    RequestType.GET, resource, destination, result.cause
                )
                raise TransferFailedError(
                    f"Failed to get {resource_name}: {result.cause}"
                ) from result.cause
            if isinstance(result, NotFound):
                transfer_logger.info(
                    "get_object_missing bucket=%s key=%s", repository.host, key
                )
            else:
                transfer_logger.info(
                    "get_completed bucket=%s key=%s destination=%s",
                    repository.host,
                    key,
                    destination,
                )
        finally:
            try:
                temporary.unlink(missing_ok=True)
            finally:
                self.transfer_events.fire_completed(
                    RequestType.GET, resource, destination
                )

    def _fetch(
        self,
        client: StorageClient,
        bucket: str,
        key: str,
        destination: Path,
        temporary: Path,
        progress: _ProgressRelay,
    ) -> FetchResult:
        try:
            temporary.parent.mkdir(parents=True, exist_ok=True)
            client.download_file(
                bucket=bucket,
                object_key=key,
                destination=temporary,
                progress=progress,
            )
            # os.replace overwrites an existing destination atomically
            os.replace(temporary, destination)
        except ObjectNotFoundError:
            return NotFound(key)
        except (StorageError, OSError) as exc:
            if progress.listener_error is not None:
                raise progress.listener_error
            return Failure(exc)
        return Fetched(destination)

    def put(self, source: Path, destination: str) -> None:
        """Upload the local file ``source`` as ``destination``.

        Raises:
            TransferFailedError: If not connected, the base directory is
                unset, or the upload fails.
            ResourceDoesNotExistError: If ``source`` is not a regular file.
        """
        repository, client = self._require_session()
        self._check_base_dir(repository)
        source = Path(source)
        if not source.is_file():
            raise ResourceDoesNotExistError(f"Source file does not exist: {source}")

        stat = source.stat()
        resource = Resource(
            destination,
            content_length=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )
        key = self.object_key(repository, destination)

        self.transfer_events.fire_initiated(RequestType.PUT, resource, source)
        try:
            self.transfer_events.fire_started(RequestType.PUT, resource, source)
            progress = self._progress(RequestType.PUT, resource, source)
            try:
                client.upload_file(
                    source=source,
                    bucket=repository.host,
                    object_key=key,
                    progress=progress,
                )
            except StorageError as exc:
                if progress.listener_error is not None:
                    raise progress.listener_error
                transfer_logger.error(
                    "put_failed bucket=%s key=%s error=%s",
                    repository.host,
                    key,
                    exc,
                    extra={"extra": {"bucket": repository.host, "key": key}},
                )
                self.transfer_events.fire_error(RequestType.PUT, resource, source, exc)
                raise TransferFailedError(f"Failed to put {destination}: {exc}") from exc
        finally:
            self.transfer_events.fire_completed(RequestType.PUT, resource, source)

        transfer_logger.info(
            "put_completed bucket=%s key=%s size=%s",
            repository.host,
            key,
            stat.st_size,
            extra={
                "extra": {
                    "bucket": repository.host,
                    "key": key,
                    "size_bytes": stat.st_size,
                }
            },
        )

    def get_file_list(self, destination_directory: str) -> list[str]:
        """List entries of a directory under the base directory.

        The listing is answered from the local filesystem (the base directory
        resolved as a local path), not from the bucket. Directory entries get
        a trailing ``/``. Use :meth:`list_objects` for the bucket contents.

        Raises:
            ResourceDoesNotExistError: If the base directory is unset or the
                path is missing or not a directory.
        """
        repository = self._require_connected()
        if repository.basedir is None:
            raise ResourceDoesNotExistError(
                "Unable to list files with a null base directory"
            )

        path = _resolve_destination_path(repository.basedir, destination_directory)
        if not path.exists():
            raise ResourceDoesNotExistError(
                f"Directory does not exist: {destination_directory}"
            )
        if not path.is_dir():
            raise ResourceDoesNotExistError(
                f"Path is not a directory: {destination_directory}"
            )

        entries: list[str] = []
        for entry in sorted(path.iterdir()):
            name = entry.name
            if entry.is_dir() and not name.endswith(PATH_SEPARATOR):
                name += PATH_SEPARATOR
            entries.append(name)
        return entries

    def get_if_newer(
        self, resource_name: str, destination: Path, timestamp: float
    ) -> bool:
        """Not implemented: always reports "not newer" without any request.

        Callers that need freshness checks must use :meth:`get`.
        """
        transfer_logger.warning(
            "get_if_newer_unsupported resource=%s destination=%s timestamp=%s",
            resource_name,
            destination,
            timestamp,
        )
        return False

    def list_objects(self) -> dict[str, ObjectSummary]:
        """Return every object of the session's bucket keyed by object key."""
        repository, client = self._require_session()
        return list_all_objects(
            client,
            repository.host,
            page_size=self._settings.WAGON_LIST_PAGE_SIZE,
        )

    def object_key(self, repository: Repository, resource_name: str) -> str:
        return object_key(
            repository.basedir or "",
            resource_name,
            flatten=self._flatten_base_dir,
        )

    # internals

    def _require_session(self) -> tuple[Repository, StorageClient]:
        with self._state_lock:
            repository = self._require_connected()
            if self._client is None:
                raise TransferFailedError("Storage client is not available")
            return repository, self._client

    @staticmethod
    def _check_base_dir(repository: Repository) -> None:
        if repository.basedir is None:
            raise TransferFailedError("Unable to operate with a null base directory")

    def _progress(
        self, request_type: RequestType, resource: Resource, local_file: Path
    ) -> _ProgressRelay:
        def fire(bytes_transferred: int) -> None:
            self.transfer_events.fire_progress(
                request_type, resource, local_file, bytes_transferred
            )

        return _ProgressRelay(fire)
