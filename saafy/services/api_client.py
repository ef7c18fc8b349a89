"""
Music API client
Async wrapper for the catalogue API with rate limiting, input sanitization,
response caching and normalized results
"""

from typing import Any, Dict, List, Optional

import httpx

from .normalize import format_song, format_songs, format_artists
from ..config.config import config
from ..config.constants import ARTIST_SORT_BY, SORT_ORDERS, CACHE_TTLS
from ..domain.entities.song import Song, Artist
from ..utils.cache import ResponseCache
from ..utils.exceptions import ApiError, ApiErrorCode
from ..utils.rate_limiter import RateLimiter
from ..utils.validation import ValidationUtils
from ..pkg.logger import get_context_logger

log = get_context_logger(config.APP_NAME, component="api")


class MusicApiClient:
    """HTTP client for the music catalogue API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.SAAFY_API_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.cache = cache if cache is not None else ResponseCache(config.CACHE_MAX_SIZE, config.CACHE_TTL)
        self.rate_limiter = rate_limiter or RateLimiter(config.RATE_LIMIT_BURST, config.RATE_LIMIT_REFILL)
        self._transport = transport
        # Created lazily so the client binds to the running loop
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"{config.APP_NAME}/{config.VERSION}",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MusicApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _handle_response(response: httpx.Response) -> Dict[str, Any]:
        """Raise ApiError for failed responses, return the decoded body"""
        if not response.is_success:
            status = response.status_code
            code = ApiErrorCode.SERVER_ERROR
            message = f"HTTP Error: {status}"

            if status == 404:
                code = ApiErrorCode.NOT_FOUND
                message = "Resource not found"
            elif status == 429:
                code = ApiErrorCode.RATE_LIMITED
                message = "Too many requests. Please slow down."
            elif status >= 500:
                message = "Server error. Please try again later."

            try:
                body = response.json()
                if isinstance(body, dict) and body.get("message"):
                    message = str(body["message"])
            except ValueError:
                pass

            raise ApiError(message, status, code)

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError("Failed to parse response", response.status_code, ApiErrorCode.PARSE_ERROR, str(e))

        if not isinstance(data, dict):
            raise ApiError("Unexpected response shape", response.status_code, ApiErrorCode.VALIDATION_ERROR)

        if "success" not in data or "data" not in data:
            log.warning("Invalid API response structure", extra={"endpoint": str(response.url)})

        return data

    async def _request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        use_cache: bool = True,
        cache_ttl: Optional[float] = CACHE_TTLS["default"],
        skip_rate_limit: bool = False,
    ) -> Dict[str, Any]:
        """GET an endpoint through cache and rate limiter"""
        key = ResponseCache.make_key(endpoint, params)
        request_log = log.bind(endpoint=endpoint)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                request_log.debug(f"Cache hit: {key}")
                return cached

        if not skip_rate_limit:
            await self.rate_limiter.acquire()

        client = await self._get_client()
        try:
            response = await client.get(endpoint, params=params)
        except httpx.TimeoutException as e:
            request_log.warning(f"Request timed out: {e}")
            raise ApiError("Request timeout", 0, ApiErrorCode.NETWORK_ERROR, str(e))
        except httpx.HTTPError as e:
            request_log.warning(f"Request failed: {e}")
            raise ApiError("Network error occurred", 0, ApiErrorCode.NETWORK_ERROR, str(e))

        data = self._handle_response(response)

        if use_cache and data.get("success"):
            self.cache.set(key, data, cache_ttl)

        return data

    async def _get_or_none(self, endpoint: str, params=None, cache_ttl: float = CACHE_TTLS["default"]):
        try:
            return await self._request(endpoint, params, cache_ttl=cache_ttl)
        except ApiError as e:
            if e.code == ApiErrorCode.NOT_FOUND:
                log.info(f"Not found: {endpoint}", extra={"endpoint": endpoint})
                return None
            raise

    @staticmethod
    def _results(data: Dict[str, Any]) -> List[Any]:
        payload = data.get("data")
        if isinstance(payload, dict) and isinstance(payload.get("results"), list):
            return payload["results"]
        return []

    async def _search(self, kind: str, query: str, page: int, limit: int) -> Optional[Dict[str, Any]]:
        sanitized = ValidationUtils.sanitize_search_query(query)
        if not sanitized:
            log.warning(f"Rejected empty {kind} search query")
            return None

        valid_page, valid_limit = ValidationUtils.validate_pagination(page, limit)
        return await self._request(
            f"/api/search/{kind}",
            {"query": sanitized, "page": valid_page, "limit": valid_limit},
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_all(self, query: str) -> Dict[str, Any]:
        """Global search across songs, albums, artists and playlists"""
        sanitized = ValidationUtils.sanitize_search_query(query)
        if not sanitized:
            return {}
        data = await self._request("/api/search", {"query": sanitized})
        payload = data.get("data")
        return payload if isinstance(payload, dict) else {}

    async def search_songs(self, query: str, page: int = 0, limit: int = 10) -> List[Song]:
        data = await self._search("songs", query, page, limit)
        return format_songs(self._results(data)) if data else []

    async def search_albums(self, query: str, page: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._search("albums", query, page, limit)
        return self._results(data) if data else []

    async def search_artists(self, query: str, page: int = 0, limit: int = 10) -> List[Artist]:
        data = await self._search("artists", query, page, limit)
        return format_artists(self._results(data)) if data else []

    async def search_playlists(self, query: str, page: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._search("playlists", query, page, limit)
        return self._results(data) if data else []

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_song(self, song_id: str) -> Optional[Song]:
        """Get full song record (with stream URLs) by id"""
        if not song_id or not isinstance(song_id, str):
            return None
        sanitized = ValidationUtils.sanitize_id(song_id)
        if not sanitized:
            return None

        data = await self._get_or_none(f"/api/songs/{sanitized}", cache_ttl=CACHE_TTLS["song"])
        if not data:
            return None

        payload = data.get("data")
        if isinstance(payload, list):
            payload = payload[0] if payload else None
        return format_song(payload)

    async def get_song_suggestions(self, song_id: str, limit: int = 10) -> List[Song]:
        """Songs similar to song_id, used to extend the queue"""
        sanitized = ValidationUtils.sanitize_id(song_id)
        if not sanitized:
            return []
        _, valid_limit = ValidationUtils.validate_pagination(0, limit)

        data = await self._get_or_none(f"/api/songs/{sanitized}/suggestions", {"limit": valid_limit})
        if not data:
            return []
        return format_songs(data.get("data"))

    async def _get_collection(self, endpoint: str, params, songs_key: str, cache_ttl: float):
        data = await self._get_or_none(endpoint, params, cache_ttl=cache_ttl)
        if not data or not isinstance(data.get("data"), dict):
            return None
        payload = dict(data["data"])
        payload[songs_key] = format_songs(payload.get(songs_key))
        return payload

    async def get_album(self, album_id: Any) -> Optional[Dict[str, Any]]:
        """Album details; ``songs`` is normalized to Song records"""
        sanitized = ValidationUtils.sanitize_id(album_id)
        if not sanitized:
            return None
        return await self._get_collection("/api/albums", {"id": sanitized}, "songs", CACHE_TTLS["album"])

    async def get_playlist(self, playlist_id: Any) -> Optional[Dict[str, Any]]:
        """Playlist details; ``songs`` is normalized to Song records"""
        sanitized = ValidationUtils.sanitize_id(playlist_id)
        if not sanitized:
            return None
        return await self._get_collection("/api/playlists", {"id": sanitized}, "songs", CACHE_TTLS["playlist"])

    async def get_artist(self, artist_id: Any) -> Optional[Dict[str, Any]]:
        """Artist details; ``topSongs`` is normalized to Song records"""
        sanitized = ValidationUtils.sanitize_id(artist_id)
        if not sanitized:
            return None
        return await self._get_collection(f"/api/artists/{sanitized}", None, "topSongs", CACHE_TTLS["artist"])

    async def get_artist_songs(
        self,
        artist_id: Any,
        page: int = 0,
        sort_by: str = "popularity",
        sort_order: str = "desc",
    ) -> List[Song]:
        sanitized = ValidationUtils.sanitize_id(artist_id)
        if not sanitized:
            return []

        valid_page, _ = ValidationUtils.validate_pagination(page, 10)
        params = {
            "page": valid_page,
            "sortBy": sort_by if sort_by in ARTIST_SORT_BY else "popularity",
            "sortOrder": sort_order if sort_order in SORT_ORDERS else "desc",
        }
        data = await self._get_or_none(f"/api/artists/{sanitized}/songs", params)
        if not data or not isinstance(data.get("data"), dict):
            return []

        payload = data["data"]
        return format_songs(payload.get("songs") or payload.get("results"))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()

    def get_rate_limit_status(self) -> Dict[str, Any]:
        return self.rate_limiter.get_status()
