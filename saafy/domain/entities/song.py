from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple, Dict, Any

from ..valueobjects.media import AlbumRef, ArtistRef, ImageVariant, StreamVariant


IMAGE_SIZES = {"small": 0, "medium": 1, "large": 2}


@dataclass(frozen=True)
class Song:
    """
    Song record as returned by the music API, after normalization.

    Immutable once fetched. Image and stream variants are ordered from the
    lowest to the highest quality tier, so the last entry is the best one.

    Attributes:
        id: Catalogue identifier (always a string)
        name: Display title
        primary_artists: Comma separated artist names
        album: Album reference
        duration: Length in seconds
        images: Artwork variants, low to high resolution
        download_urls: Stream variants, low to high bitrate

    Example:
        >>> song = Song(
        ...     id="abc123",
        ...     name="Kesariya",
        ...     primary_artists="Arijit Singh",
        ...     duration=268,
        ...     download_urls=(StreamVariant("96kbps", "https://a/96"),
        ...                    StreamVariant("320kbps", "https://a/320")),
        ... )
        >>> song.stream_url
        'https://a/320'
    """

    id: str
    name: str
    primary_artists: str = "Unknown Artist"
    album: AlbumRef = field(default_factory=AlbumRef)
    duration: int = 0
    images: Tuple[ImageVariant, ...] = ()
    download_urls: Tuple[StreamVariant, ...] = ()

    artists: Tuple[ArtistRef, ...] = ()
    year: Optional[str] = None
    language: Optional[str] = None
    play_count: Optional[int] = None
    has_lyrics: bool = False
    url: Optional[str] = None

    @property
    def stream_url(self) -> Optional[str]:
        """Highest quality stream URL, if any"""
        for variant in reversed(self.download_urls):
            if variant.url:
                return variant.url
        return None

    @property
    def is_playable(self) -> bool:
        return self.stream_url is not None

    @property
    def display_name(self) -> str:
        """Human-readable song name"""
        if self.primary_artists and self.name:
            return f"{self.primary_artists} - {self.name}"
        return self.name

    @property
    def duration_formatted(self) -> str:
        """Duration in M:SS format"""
        if self.duration <= 0:
            return "0:00"
        minutes, seconds = divmod(int(self.duration), 60)
        return f"{minutes}:{seconds:02d}"

    def image_url(self, size: str = "large") -> Optional[str]:
        """Artwork URL for a size tier, falling back to the best available"""
        if not self.images:
            return None
        index = min(IMAGE_SIZES.get(size, 2), len(self.images) - 1)
        return self.images[index].url or self.images[-1].url or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return asdict(self)


@dataclass(frozen=True)
class Artist:
    """Artist record returned by artist search and lookup"""

    id: str
    name: str = "Unknown Artist"
    role: str = "Artist"
    images: Tuple[ImageVariant, ...] = ()
    type: str = "artist"
    url: str = ""
    follower_count: Optional[int] = None
    bio: Optional[Any] = None
    dominant_language: Optional[str] = None
    dominant_type: Optional[str] = None
