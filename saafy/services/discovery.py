"""
Discovery engine
Pseudo-personalized song discovery without an account: a per-process seed
picks which curated queries are used, so content rotates between sessions
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, TypeVar

from .api_client import MusicApiClient
from ..domain.entities.song import Song
from ..config.constants import ERROR_MESSAGES
from ..utils.exceptions import ApiError
from ..pkg.logger import logger

T = TypeVar("T")

DISCOVERY_POOLS: Dict[str, Dict] = {
    "hindi": {
        "display_name": "Hindi",
        "queries": [
            "Arijit Singh hits", "Pritam songs", "A.R. Rahman classics",
            "Shreya Ghoshal best", "Neha Kakkar popular", "Jubin Nautiyal",
            "Atif Aslam romantic", "Sonu Nigam hits", "Kumar Sanu classics",
            "Lata Mangeshkar", "Kishore Kumar", "Mohammed Rafi",
            "Honey Singh party", "Badshah hits", "Diljit Dosanjh hindi",
            "Shankar Mahadevan", "Sunidhi Chauhan", "Udit Narayan",
            "Bollywood romantic", "Bollywood party songs", "Bollywood 90s",
            "Bollywood 2000s hits", "Hindi unplugged", "Hindi lofi",
            "Bollywood dance", "Hindi sad songs", "Hindi motivational",
        ],
    },
    "english": {
        "display_name": "English",
        "queries": [
            "Ed Sheeran hits", "Taylor Swift popular", "The Weeknd",
            "Dua Lipa songs", "Post Malone", "Drake hits",
            "Billie Eilish", "Justin Bieber", "Ariana Grande",
            "Bruno Mars", "Maroon 5", "Coldplay",
            "Imagine Dragons", "OneRepublic", "Chainsmokers",
            "Charlie Puth", "Shawn Mendes", "Khalid songs",
            "Pop hits 2024", "English romantic", "EDM party",
            "Hip hop hits", "R&B smooth", "Rock classics",
            "Indie pop", "English acoustic", "Trending English",
        ],
    },
    "marathi": {
        "display_name": "Marathi",
        "queries": [
            "Marathi romantic songs", "Marathi movie songs", "Ajay Atul songs",
            "Shankar Mahadevan marathi", "Avadhoot Gupte", "Swapnil Bandodkar",
            "Bela Shende songs", "Marathi lavani", "Marathi natya sangeet",
            "Marathi unplugged", "Marathi party songs", "Marathi devotional",
            "Sairat songs", "Marathi 90s", "New marathi songs",
            "Marathi dj songs", "Marathi sad songs", "Marathi love songs",
        ],
    },
    "punjabi": {
        "display_name": "Punjabi",
        "queries": [
            "Diljit Dosanjh hits", "Sidhu Moosewala", "AP Dhillon",
            "Karan Aujla songs", "Guru Randhawa", "Hardy Sandhu",
            "Jassie Gill", "Ammy Virk songs", "Jasmine Sandlas",
            "B Praak songs", "Amrinder Gill", "Gurdas Maan",
            "Punjabi party songs", "Punjabi romantic", "Punjabi bhangra",
            "Punjabi sad songs", "New punjabi songs", "Punjabi dj",
            "Punjabi hip hop", "Punjabi wedding songs", "Trending punjabi",
        ],
    },
}


@dataclass
class DiscoveryResult:
    """Songs found for one discovery query"""

    success: bool
    songs: List[Song] = field(default_factory=list)
    query: Optional[str] = None
    language: Optional[str] = None
    error: Optional[str] = None


def seeded_shuffle(items: Sequence[T], seed: int) -> List[T]:
    """Deterministic shuffle: same seed, same order"""
    result = list(items)
    random.Random(seed).shuffle(result)
    return result


def seeded_pick(items: Sequence[T], count: int, seed: int) -> List[T]:
    return seeded_shuffle(items, seed)[:count]


def generate_seed() -> int:
    return int(time.time() * 1000) % 1_000_000 + random.randrange(100_000)


class DiscoveryService:
    """Seeded discovery over curated query pools"""

    MIX_LANGUAGES = 3
    MIX_SONGS_PER_LANGUAGE = 6

    def __init__(self, api: MusicApiClient, seed: Optional[int] = None, pools: Optional[Dict[str, Dict]] = None):
        self.api = api
        self.pools = pools or DISCOVERY_POOLS
        self._seed = seed

    @property
    def seed(self) -> int:
        """Seed for this session, generated on first use"""
        if self._seed is None:
            self._seed = generate_seed()
        return self._seed

    def refresh(self) -> int:
        """Pick a new seed so the next calls return fresh content"""
        self._seed = generate_seed()
        logger.info(f"🔄 Discovery refreshed (seed {self._seed})")
        return self._seed

    def available_languages(self) -> List[str]:
        return list(self.pools)

    def display_name(self, language: str) -> str:
        pool = self.pools.get(language)
        return pool["display_name"] if pool else language

    def get_discovery_query(self, language: str, index: int = 0) -> Optional[str]:
        pool = self.pools.get(language)
        if not pool:
            return None

        language_hash = sum(ord(c) for c in language)
        query_seed = self.seed + language_hash + index * 17
        return seeded_shuffle(pool["queries"], query_seed)[0]

    async def get_discovery_songs(self, language: str, limit: int = 10) -> DiscoveryResult:
        """Fetch songs for the session's query in one language"""
        query = self.get_discovery_query(language)
        if not query:
            return DiscoveryResult(success=False, error=ERROR_MESSAGES["unknown_language"])

        try:
            songs = await self.api.search_songs(query, 0, limit)
        except ApiError as e:
            logger.warning(f"Discovery search failed for {language}: {e}")
            return DiscoveryResult(success=False, query=query, error=str(e))

        if not songs:
            return DiscoveryResult(success=False, query=query, error=ERROR_MESSAGES["no_results"])

        return DiscoveryResult(
            success=True,
            songs=songs,
            query=query,
            language=self.display_name(language),
        )

    async def get_all_discovery_content(self, songs_per_language: int = 8) -> Dict[str, DiscoveryResult]:
        """Discovery songs for every language, fetched concurrently"""
        languages = self.available_languages()
        results = await asyncio.gather(
            *(self.get_discovery_songs(language, songs_per_language) for language in languages)
        )
        return dict(zip(languages, results))

    async def get_for_you_mix(self, limit: int = 12) -> List[Song]:
        """A 'For You' mix drawn from three seeded languages"""
        languages = seeded_pick(self.available_languages(), self.MIX_LANGUAGES, self.seed)

        all_songs: List[Song] = []
        for language in languages:
            result = await self.get_discovery_songs(language, self.MIX_SONGS_PER_LANGUAGE)
            if result.success:
                all_songs.extend(result.songs)

        mix = seeded_shuffle(all_songs, self.seed + 999)[:limit]
        logger.debug(f"For You mix: {len(mix)} songs from {languages}")
        return mix
