from __future__ import annotations

import aiohttp

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
DEFAULT_FETCH_TIMEOUT_S = 30
CONNECT_TIMEOUT_S = 10
MAX_HTML_BYTES = 5 * 1024 * 1024


class HttpClient:
    """Lazily created, pooled aiohttp session shared by extractors and downloads."""

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        limit: int = 20,
        limit_per_host: int = 5,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self._limit = limit
        self._limit_per_host = limit_per_host
        self._session: aiohttp.ClientSession | None = None

    async def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s, connect=CONNECT_TIMEOUT_S)
            connector = aiohttp.TCPConnector(
                limit=self._limit,
                limit_per_host=self._limit_per_host,
                keepalive_timeout=90,
            )
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def resolve_redirects(self, url: str, *, headers: dict[str, str] | None = None) -> str:
        """Follow redirects of a short/share link and return the final URL."""
        session = await self.session()
        async with session.get(url, headers=headers, allow_redirects=True) as resp:
            return str(resp.url)

    async def get_text(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_bytes: int = MAX_HTML_BYTES,
    ) -> tuple[int, str]:
        session = await self.session()
        async with session.get(url, headers=headers) as resp:
            raw = await resp.content.read(max_bytes)
            return resp.status, raw.decode(resp.charset or "utf-8", errors="replace")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
