"""HTTP access to the raster coverage tile source."""

from __future__ import annotations

import logging

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    HTTP_MAX_RETRIES,
    HTTP_POOL_CONNECTIONS,
    HTTP_POOL_MAXSIZE,
    REQUEST_TIMEOUT,
    TILE_API_BASE,
)
from ..errors import TileFetchError

LOGGER = logging.getLogger(__name__)

__all__ = ["TileClient", "create_default_session"]


def _build_retry() -> Retry:
    return Retry(
        total=HTTP_MAX_RETRIES,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )


def create_default_session() -> Session:
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=_build_retry(),
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "image/png,image/*;q=0.9"})
    return session


class TileClient:
    """Fetches tile PNG bytes; every failure surfaces as :class:`TileFetchError`."""

    def __init__(
        self,
        *,
        base_url: str = TILE_API_BASE,
        session: Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or create_default_session()
        self._timeout = timeout

    def tile_url(
        self, operator_id: str, zoom: int, tile_x: int, tile_y: int, version: str
    ) -> str:
        base = self._base_url.replace("{mno}", operator_id)
        return f"{base}/{zoom}/{tile_x}/{tile_y}.png?v={version}"

    def fetch(
        self, operator_id: str, zoom: int, tile_x: int, tile_y: int, version: str
    ) -> bytes:
        url = self.tile_url(operator_id, zoom, tile_x, tile_y, version)
        label = f"{operator_id}/{zoom}/{tile_x}/{tile_y}"
        LOGGER.debug("GET %s", url)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.Timeout as exc:
            raise TileFetchError(
                f"Tile fetch timed out for {label} after {self._timeout}s"
            ) from exc
        except requests.RequestException as exc:
            raise TileFetchError(
                f"Failed to fetch tile {label}: {exc.__class__.__name__}"
            ) from exc
        if not 200 <= response.status_code < 300:
            raise TileFetchError(
                f"Tile fetch failed for {label}: "
                f"{response.status_code} {response.reason or ''}".rstrip()
            )
        content = response.content
        if not content:
            raise TileFetchError(f"Tile fetch returned an empty body for {label}")
        return content

    def close(self) -> None:
        self._session.close()
