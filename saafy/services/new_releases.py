"""
New releases
Titles are scraped from the public new-release pages, then resolved to
playable songs through the catalogue search
"""

import asyncio
import re
from typing import Dict, Iterable, List, Optional

import httpx

from .api_client import MusicApiClient
from ..config.config import config
from ..domain.entities.song import Song
from ..utils.exceptions import ApiError
from ..pkg.logger import logger

NEW_RELEASES_URLS = {
    "hindi": "https://www.jiosaavn.com/new-releases/hindi",
    "english": "https://www.jiosaavn.com/new-releases/english",
    "tamil": "https://www.jiosaavn.com/new-releases/tamil",
    "telugu": "https://www.jiosaavn.com/new-releases/telugu",
    "punjabi": "https://www.jiosaavn.com/new-releases/punjabi",
    "marathi": "https://www.jiosaavn.com/new-releases/marathi",
    "gujarati": "https://www.jiosaavn.com/new-releases/gujarati",
    "bengali": "https://www.jiosaavn.com/new-releases/bengali",
    "kannada": "https://www.jiosaavn.com/new-releases/kannada",
    "malayalam": "https://www.jiosaavn.com/new-releases/malayalam",
}

FALLBACK_TITLES = {
    "hindi": ["Kesariya", "Pal Pal Dil Ke Paas", "Tum Hi Ho", "Raabta", "Channa Mereya"],
    "english": ["As It Was", "Heat Waves", "Stay", "Good 4 U", "Levitating"],
    "tamil": ["Naatu Naatu", "Oo Antava", "Arabic Kuthu", "Jimikki Kammal", "Rowdy Baby"],
    "telugu": ["Naatu Naatu", "Oo Antava", "Butta Bomma", "Inkem Inkem", "Ramuloo Ramulaa"],
    "punjabi": ["295", "Hass Hass", "Excuses", "Laung Laachi", "Qismat"],
}

DEFAULT_LANGUAGES = ["hindi", "english", "tamil", "telugu", "punjabi"]
MIXED_LANGUAGES = ["hindi", "english", "tamil", "punjabi"]

MAX_TITLES = 15

_DATA_TITLE = re.compile(r'data-title="([^"]+)"')
_H3_TITLE = re.compile(r"<h3[^>]*>([^<]+)</h3>")
_SONG_LINK = re.compile(r"/song/([^/]+)/")


def _slug_to_title(slug: str) -> str:
    return " ".join(word.capitalize() for word in slug.replace("-", " ").split())


def extract_song_titles(page: str, link_limit: Optional[int] = None) -> List[str]:
    """Candidate song titles from a new-releases page, deduplicated in order"""
    candidates: List[str] = []
    candidates.extend(_DATA_TITLE.findall(page))
    candidates.extend(title.strip() for title in _H3_TITLE.findall(page))
    slugs = _SONG_LINK.findall(page)
    if link_limit is not None:
        slugs = slugs[:link_limit]
    candidates.extend(_slug_to_title(slug) for slug in slugs)

    return _dedupe(
        title for title in candidates
        if title and len(title) > 2 and "undefined" not in title
    )


def _dedupe(titles: Iterable[str]) -> List[str]:
    seen = set()
    unique = []
    for title in titles:
        if title not in seen:
            seen.add(title)
            unique.append(title)
    return unique


class NewReleasesService:
    """Resolve new-release titles to playable songs"""

    def __init__(self, api: MusicApiClient, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api = api
        self._transport = transport

    async def _fetch_page(self, client: httpx.AsyncClient, language: str) -> Optional[str]:
        url = NEW_RELEASES_URLS.get(language, NEW_RELEASES_URLS["hindi"])
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            logger.warning(f"New releases page unavailable for {language}: {e}")
            return None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=config.REQUEST_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": f"{config.APP_NAME}/{config.VERSION}"},
            transport=self._transport,
        )

    async def _resolve(self, titles: List[str]) -> List[Song]:
        """Search each title (first hit only) and keep playable songs"""
        songs: List[Song] = []
        for title in titles[:MAX_TITLES]:
            try:
                results = await self.api.search_songs(title, 0, 1)
            except ApiError as e:
                logger.debug(f"New release lookup failed for '{title}': {e}")
                continue
            if results and results[0].is_playable:
                songs.append(results[0])
        return songs

    async def get_by_language(self, language: str = "hindi", limit: int = 10) -> List[Song]:
        async with self._client() as client:
            page = await self._fetch_page(client, language)

        if page is None:
            titles = FALLBACK_TITLES.get(language, FALLBACK_TITLES["hindi"])
        else:
            titles = extract_song_titles(page)[:20]

        if not titles:
            return []

        songs = await self._resolve(titles)
        logger.info(f"🆕 {len(songs)} new releases for {language}")
        return songs[:limit]

    async def get_all(self, limit_per_language: int = 8) -> Dict[str, List[Song]]:
        results = await asyncio.gather(
            *(self.get_by_language(language, limit_per_language) for language in DEFAULT_LANGUAGES)
        )
        return dict(zip(DEFAULT_LANGUAGES, results))

    async def get_mixed(self, limit: int = 20) -> List[Song]:
        """New releases across several languages in one list"""
        titles: List[str] = []
        async with self._client() as client:
            for language in MIXED_LANGUAGES:
                page = await self._fetch_page(client, language)
                if page:
                    titles.extend(extract_song_titles(page, link_limit=8))

        if not titles:
            titles = [
                "Kesariya", "As It Was", "Naatu Naatu", "Hass Hass",
                "Pal Pal Dil Ke Paas", "Heat Waves", "Arabic Kuthu", "295",
            ]

        songs = await self._resolve(_dedupe(titles))
        return songs[:limit]
