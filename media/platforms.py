from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence
from urllib.parse import urlsplit

from core.context import ExecutionContext
from core.errors import UnsupportedPlatform
from core.models import MediaDescriptor

log = logging.getLogger(__name__)

ExtractionStrategy = Callable[[ExecutionContext, str], Awaitable[list[MediaDescriptor]]]


@dataclass(frozen=True, slots=True)
class PlatformHandler:
    name: str
    hosts: tuple[str, ...]
    extract: ExtractionStrategy


def match_host(url: str, hosts: Iterable[str]) -> bool:
    """Return True when the URL's hostname is one of ``hosts`` or a subdomain of one.

    Only the hostname is inspected, so a platform name appearing in the path or
    query string never matches. Unparseable URLs do not match.
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    hostname = hostname.lower()
    for host in hosts:
        host = host.lower()
        if hostname == host or hostname.endswith("." + host):
            return True
    return False


class PlatformRegistry:
    """Ordered table of platform handlers; the first host match wins."""

    def __init__(self, handlers: Iterable[PlatformHandler] = ()) -> None:
        self._lock = threading.Lock()
        self._handlers: tuple[PlatformHandler, ...] = tuple(handlers)

    def register(self, handler: PlatformHandler) -> None:
        with self._lock:
            self._handlers = (*self._handlers, handler)

    @property
    def handlers(self) -> Sequence[PlatformHandler]:
        return self._handlers

    def names(self) -> list[str]:
        return [handler.name for handler in self._handlers]

    def resolve(self, url: str) -> PlatformHandler | None:
        for handler in self._handlers:
            if match_host(url, handler.hosts):
                return handler
        return None

    async def get_media(self, ctx: ExecutionContext, url: str) -> list[MediaDescriptor]:
        handler = self.resolve(url)
        if handler is None:
            raise UnsupportedPlatform(url)
        log.debug("Resolved %s to %s", url, handler.name)
        return await handler.extract(ctx, url)
