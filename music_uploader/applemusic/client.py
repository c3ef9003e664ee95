"""
Apple Music API client

Thin asynchronous transport over the Apple Music REST API. Every request:
- waits on an asyncio-throttle Throttler so at most
  network.requests_per_second requests start per second
- carries the developer token and Music User Token headers
- maps transport errors, timeouts, HTTP error statuses and undecodable
  bodies to AppleMusicError

The endpoint methods raise on failure. Tolerating failures (a missed search,
a failed attach) is the job of CatalogResolver and RemotePlaylistManager.

Usage Examples:

    async with AppleMusicClient() as client:
        songs = await client.search_songs("I+miss+you+blink-182")
        playlists = await client.get_library_playlists()
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import aiohttp
from asyncio_throttle import Throttler
from yarl import URL

from ..config.auth import get_auth, AppleMusicAuth
from ..config.settings import get_settings, Settings
from ..exceptions import AppleMusicError
from ..utils.helpers import retry_on_failure, truncate_string
from ..utils.logger import get_logger
from .models import (
    PlaylistId,
    RemotePlaylist,
    RemoteTrackMatch,
    TrackId,
    parse_collection,
)


LIBRARY_PLAYLISTS_PATH = "/v1/me/library/playlists"


class AppleMusicClient:
    """
    Asynchronous Apple Music API client

    The aiohttp session is created lazily on the first request (it must be
    created inside a running event loop) and closed by close() or by leaving
    the async context manager. A session passed in by the caller is never
    closed by the client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        auth: Optional[AppleMusicAuth] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings or get_settings()
        self.auth = auth or get_auth()
        self.logger = get_logger(__name__)

        self.base_url = self.settings.applemusic.api_base_url.rstrip('/')
        self.storefront = self.settings.applemusic.storefront

        self._session = session
        self._owns_session = session is None
        self.throttler = Throttler(
            rate_limit=self.settings.network.requests_per_second,
            period=1.0
        )

    async def __aenter__(self) -> 'AppleMusicClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.network.request_timeout),
                headers={'User-Agent': self.settings.network.user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """
        Perform one API request

        Args:
            method: HTTP method
            path: Path and query, already percent-encoded (it is not re-encoded)
            payload: JSON body for POST requests

        Returns:
            Tuple of (status code, decoded JSON body or None for empty bodies)

        Raises:
            AuthenticationError: If tokens are not configured
            AppleMusicError: On transport failure, timeout, status >= 400 or undecodable body
        """
        headers = self.auth.get_headers()
        url = URL(f"{self.base_url}{path}", encoded=True)

        async with self.throttler:
            self.logger.debug(f"{method} {path}")
            try:
                async with self.session.request(method, url, json=payload, headers=headers) as response:
                    status = response.status
                    body = await response.read()
            except asyncio.TimeoutError as e:
                raise AppleMusicError(
                    f"{method} {path} timed out",
                    details={'path': path, 'transport_error': True, 'original_error': repr(e)}
                ) from e
            except aiohttp.ClientError as e:
                raise AppleMusicError(
                    f"{method} {path} failed: {e}",
                    details={'path': path, 'transport_error': True, 'original_error': repr(e)}
                ) from e

        if status >= 400:
            raise AppleMusicError(
                f"{method} {path} failed with status {status}",
                details={'path': path, 'body': truncate_string(body.decode('utf-8', 'replace'), 500)},
                status=status
            )

        if not body:
            return status, None

        try:
            return status, json.loads(body)
        except ValueError as e:
            raise AppleMusicError(
                f"{method} {path} returned an undecodable body: {e}",
                details={'path': path},
                status=status
            ) from e

    async def request_with_retry(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """request() with the configured retry policy for transient failures"""
        network = self.settings.network
        retrying = retry_on_failure(
            max_attempts=network.max_retries + 1,
            delay=network.retry_delay,
            backoff=network.retry_backoff,
        )(self.request)
        return await retrying(method, path, payload)

    async def search_songs(self, term: str, limit: int = 1) -> List[RemoteTrackMatch]:
        """
        Search the storefront catalog for songs

        Args:
            term: Percent-encoded search term ('+' separated)
            limit: Maximum number of results

        Returns:
            Matches in the order the API ranked them (may be empty)

        Raises:
            AppleMusicError: On request failure or unexpected response shape
        """
        path = (
            f"/v1/catalog/{quote(self.storefront, safe='')}/search"
            f"?term={term}&limit={limit}&types=songs"
        )
        _, payload = await self.request_with_retry('GET', path)

        if not isinstance(payload, dict) or not isinstance(payload.get('results'), dict):
            raise AppleMusicError("Search response has no 'results' object", details={'term': term})

        songs = payload['results'].get('songs')
        if songs is None:
            return []

        try:
            return parse_collection(songs, RemoteTrackMatch.from_api_data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AppleMusicError(f"Unexpected search response: {e}", details={'term': term}) from e

    async def create_library_playlist(self, name: str) -> List[RemotePlaylist]:
        """
        Create a library playlist

        Not retried: a repeated request would create a second playlist.

        Returns:
            The playlist collection returned by the API

        Raises:
            AppleMusicError: On request failure or unexpected response shape
        """
        _, payload = await self.request('POST', LIBRARY_PLAYLISTS_PATH, {'attributes': {'name': name}})

        try:
            return parse_collection(payload, RemotePlaylist.from_api_data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AppleMusicError(f"Unexpected playlist creation response: {e}", details={'name': name}) from e

    async def add_library_playlist_tracks(
        self,
        playlist_id: PlaylistId,
        track_ids: Sequence[TrackId],
    ) -> int:
        """
        Append catalog songs to a library playlist, in the given order

        Returns:
            HTTP status code of the response

        Raises:
            AppleMusicError: On request failure
        """
        path = f"{LIBRARY_PLAYLISTS_PATH}/{quote(playlist_id, safe='')}/tracks"
        body = {'data': [{'id': track_id, 'type': 'songs'} for track_id in track_ids]}
        status, _ = await self.request_with_retry('POST', path, body)
        return status

    async def get_library_playlists(self) -> List[RemotePlaylist]:
        """
        Fetch every library playlist, following pagination links

        Raises:
            AppleMusicError: On request failure or unexpected response shape
        """
        playlists: List[RemotePlaylist] = []
        path: Optional[str] = LIBRARY_PLAYLISTS_PATH

        while path:
            _, payload = await self.request_with_retry('GET', path)
            try:
                playlists.extend(parse_collection(payload, RemotePlaylist.from_api_data))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise AppleMusicError(f"Unexpected playlist listing response: {e}") from e
            path = payload.get('next')

        self.logger.info(f"Retrieved {len(playlists)} library playlists")
        return playlists
