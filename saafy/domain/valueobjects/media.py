from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImageVariant:
    """One resolution tier of an artwork image"""
    quality: str
    url: str


@dataclass(frozen=True)
class StreamVariant:
    """One quality tier of an audio stream"""
    quality: str
    url: str


@dataclass(frozen=True)
class AlbumRef:
    """Album a song belongs to"""
    name: str = "Unknown Album"
    id: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class ArtistRef:
    """Artist credited on a song"""
    name: str
    id: str = ""
    url: str = ""
    image: str = ""
