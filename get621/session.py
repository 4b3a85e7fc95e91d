"""Rate-limited HTTP session shared by every request of a run.

The upstream API asks clients to stay well under one request per second,
so each request is followed by a fixed cooldown, whether it succeeded or
not. Requests are strictly sequential: a session is not meant to be shared
between threads.

Use it as a context manager so the connection pool is always released::

    with ApiSession.from_settings(settings) as session:
        posts = search(session, ["fox"], limit=5)
"""

from __future__ import annotations

import logging
import time
from typing import Any, BinaryIO, Callable

import httpx

from get621.config import DEFAULT_COOLDOWN, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, Settings
from get621.errors import MappingError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class ApiSession:
    """Owns the HTTP client and enforces the cooldown between requests.

    Parameters
    ----------
    base_url : str
        Server root, e.g. ``https://e926.net``.
    user_agent : str
        Client identifier sent with every request.
    cooldown : float
        Seconds to wait after each request.
    timeout : float
        Connect/read timeout handed to the transport.
    transport : httpx.BaseTransport | None
        Alternative transport, mainly for tests.
    sleep : callable
        Function used to wait out the cooldown.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = DEFAULT_USER_AGENT,
        cooldown: float = DEFAULT_COOLDOWN,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cooldown = cooldown
        self.request_count = 0
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ApiSession":
        return cls(
            settings.base_url,
            user_agent=settings.user_agent,
            cooldown=settings.cooldown,
            timeout=settings.timeout,
            **kwargs,
        )

    # -- lifecycle -----------------------------------------------------------

    def __enter__(self) -> "ApiSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    # -- requests ------------------------------------------------------------

    def _cooldown(self) -> None:
        self.request_count += 1
        if self.cooldown > 0:
            logger.debug("Cooling down for %.2fs", self.cooldown)
            self._sleep(self.cooldown)

    def get_json(self, path: str, params: dict | None = None) -> Any:
        """GET an API endpoint and return the decoded JSON body.

        Raises:
            NetworkError: transport failure or non-success status.
            NotFoundError: the server answered 404.
            MappingError: the body is not valid JSON.
        """
        logger.debug("GET %s%s %s", self.base_url, path, params or "")
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Couldn't perform request: {_describe(e)}") from e
        finally:
            self._cooldown()

        if response.status_code == 404:
            reason = _reason(response)
            raise NotFoundError(reason or "Not found.", reason=reason)
        if not response.is_success:
            raise NetworkError(
                f"HTTP error: {response.status_code}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise MappingError(f"Invalid JSON in response from {path}: {e}") from e

    def download(self, url: str, sink: BinaryIO) -> int:
        """Stream the body at *url* into *sink*; return the number of bytes written."""
        logger.debug("Downloading %s", url)
        total = 0
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise NetworkError(
                        f"HTTP error: {response.status_code}",
                        status_code=response.status_code,
                    )
                for chunk in response.iter_bytes():
                    sink.write(chunk)
                    total += len(chunk)
        except httpx.HTTPError as e:
            raise NetworkError(f"Error when downloading {url}: {_describe(e)}") from e
        finally:
            self._cooldown()

        logger.debug("Downloaded %d bytes from %s", total, url)
        return total


def _reason(response: httpx.Response) -> str:
    """Pull the server's ``reason`` string out of an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and isinstance(body.get("reason"), str):
        return body["reason"]
    return ""
