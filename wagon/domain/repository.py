"""Value types describing the remote repository and the artifacts moved to it.

A ``Repository`` is the target a session operates against (bucket plus base
directory). ``Resource`` values are built fresh for every transfer call.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable
from urllib.parse import quote, unquote, urlsplit


@dataclass(frozen=True, slots=True)
class RepositoryPermissions:
    """Permissions requested for files and directories created remotely."""

    group: str | None = None
    file_mode: str | None = None
    directory_mode: str | None = None


@dataclass(frozen=True, slots=True)
class Repository:
    """Remote location a transport session is bound to.

    ``host`` is the bucket name and ``basedir`` the path inside it.
    """

    id: str
    url: str
    protocol: str
    host: str
    basedir: str | None
    username: str | None = None
    password: str | None = None
    port: int | None = None
    permissions: RepositoryPermissions | None = None

    @classmethod
    def from_url(cls, url: str, *, id: str | None = None) -> "Repository":
        """Parse ``scheme://[user[:secret]@]bucket[/base/dir]``.

        Raises:
            ValueError: If the URL has no scheme or no host.
        """
        parts = urlsplit(url)
        if not parts.scheme:
            raise ValueError(f"Repository URL has no scheme: {url!r}")
        if not parts.hostname:
            raise ValueError(f"Repository URL has no host: {url!r}")

        basedir = parts.path or "/"
        return cls(
            id=id or parts.hostname,
            url=url,
            protocol=parts.scheme.lower(),
            # urlsplit lower-cases hostname; bucket names are lower-case anyway
            host=parts.hostname,
            basedir=unquote(basedir),
            username=unquote(parts.username) if parts.username else None,
            password=unquote(parts.password) if parts.password else None,
            port=parts.port,
        )

    def with_permissions(self, permissions: RepositoryPermissions) -> "Repository":
        return replace(self, permissions=permissions)


@dataclass(frozen=True, slots=True)
class AuthenticationInfo:
    """Identity used to sign backend requests.

    ``username`` and ``password`` carry the access key id and secret key.
    """

    username: str | None = None
    password: str | None = None
    session_token: str | None = None

    def __repr__(self) -> str:
        secret = "***" if self.password else None
        token = "***" if self.session_token else None
        return (
            f"AuthenticationInfo(username={self.username!r}, "
            f"password={secret!r}, session_token={token!r})"
        )


@dataclass(frozen=True, slots=True)
class ProxyInfo:
    """HTTP(S) proxy the backend client should go through."""

    host: str
    port: int = -1
    type: str = "http"
    username: str | None = None
    password: str | None = None
    non_proxy_hosts: str | None = None

    def to_url(self) -> str:
        auth = ""
        if self.username:
            auth = quote(self.username, safe="")
            if self.password:
                auth = f"{auth}:{quote(self.password, safe='')}"
            auth = f"{auth}@"
        port = f":{self.port}" if self.port and self.port > 0 else ""
        return f"http://{auth}{self.host}{port}"


ProxyInfoProvider = Callable[[str | None], ProxyInfo | None]


def proxy_provider_for(proxy: ProxyInfo | None) -> ProxyInfoProvider:
    """Wrap a single proxy in a provider that matches on protocol type."""

    def provider(protocol: str | None) -> ProxyInfo | None:
        if protocol is None or proxy is None or protocol.lower() == proxy.type.lower():
            return proxy
        return None

    return provider


@dataclass(frozen=True, slots=True)
class Resource:
    """An artifact being transferred, named relative to the base directory."""

    name: str
    content_length: int | None = None
    last_modified: datetime | None = None
