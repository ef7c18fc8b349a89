"""
Normalization of raw music API records
Every song or artist leaving the API client goes through here exactly once
"""

import html
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..domain.entities.song import Song, Artist
from ..domain.valueobjects.media import AlbumRef, ArtistRef, ImageVariant, StreamVariant

# Single-URL fields seen on older API records, in priority order
STREAM_FALLBACK_FIELDS = ("download_url", "downloadLink", "streamUrl", "previewUrl")


def decode_entities(value: Any) -> Any:
    """Decode HTML entities (&quot; &amp; &#039; ...) in API strings"""
    if not isinstance(value, str):
        return value
    return html.unescape(value)


def _text(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return decode_entities(str(value))


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _item_url(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return item.get("url") or item.get("link") or ""
    return ""


def _images(raw: Any, fallback: Any = None) -> Tuple[ImageVariant, ...]:
    if not raw and fallback:
        raw = fallback
    if isinstance(raw, str):
        return (ImageVariant(quality="default", url=raw),)
    if not isinstance(raw, list):
        return ()

    variants = []
    for item in raw:
        url = _item_url(item)
        if not url:
            continue
        quality = item.get("quality", "") if isinstance(item, dict) else ""
        variants.append(ImageVariant(quality=quality or "default", url=url))
    return tuple(variants)


def _streams(record: Dict[str, Any]) -> Tuple[StreamVariant, ...]:
    raw = record.get("downloadUrl")
    if isinstance(raw, list) and raw:
        variants = []
        for item in raw:
            url = _item_url(item)
            if url:
                quality = item.get("quality", "") if isinstance(item, dict) else ""
                variants.append(StreamVariant(quality=quality or "default", url=url))
        if variants:
            return tuple(variants)
    elif isinstance(raw, str) and raw:
        return (StreamVariant(quality="default", url=raw),)

    for name in STREAM_FALLBACK_FIELDS:
        url = record.get(name)
        if isinstance(url, str) and url:
            return (StreamVariant(quality="default", url=url),)

    media = record.get("media")
    if isinstance(media, dict) and media.get("url"):
        return (StreamVariant(quality="default", url=media["url"]),)
    return ()


def _primary_artist_list(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    artists = record.get("artists")
    if isinstance(artists, dict) and isinstance(artists.get("primary"), list):
        return [a for a in artists["primary"] if isinstance(a, dict)]
    return []


def _primary_artists(record: Dict[str, Any]) -> str:
    value = record.get("primaryArtists")
    if isinstance(value, str) and value.strip():
        return decode_entities(value)
    if isinstance(value, list):
        names = [_item_name(a) for a in value]
        names = [n for n in names if n]
        if names:
            return decode_entities(", ".join(names))

    names = [str(a.get("name")) for a in _primary_artist_list(record) if a.get("name")]
    if names:
        return decode_entities(", ".join(names))
    return "Unknown Artist"


def _item_name(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("name") or "")
    return str(item or "")


def _artist_refs(record: Dict[str, Any], primary_artists: str) -> Tuple[ArtistRef, ...]:
    primary = _primary_artist_list(record)
    if primary:
        refs = []
        for artist in primary:
            images = artist.get("image")
            image = ""
            if isinstance(images, list) and len(images) > 1:
                image = _item_url(images[1])
            refs.append(
                ArtistRef(
                    id=str(artist.get("id") or ""),
                    name=_text(artist.get("name"), "Unknown"),
                    url=artist.get("url") or "",
                    image=image,
                )
            )
        return tuple(refs)

    return tuple(ArtistRef(name=name.strip()) for name in primary_artists.split(",") if name.strip())


def _album(raw: Any) -> AlbumRef:
    if isinstance(raw, dict):
        album_id = raw.get("id")
        return AlbumRef(
            name=_text(raw.get("name"), "Unknown Album"),
            id=str(album_id) if album_id else None,
            url=raw.get("url") or None,
        )
    if isinstance(raw, str) and raw:
        return AlbumRef(name=decode_entities(raw))
    return AlbumRef()


def format_song(record: Any) -> Optional[Song]:
    """Normalize one raw song record; None when it has no id"""
    if not isinstance(record, dict) or not record.get("id"):
        return None

    primary_artists = _primary_artists(record)
    year = record.get("year")

    return Song(
        id=str(record["id"]),
        name=_text(record.get("name") or record.get("title"), "Unknown"),
        primary_artists=primary_artists,
        album=_album(record.get("album")),
        duration=_as_int(record.get("duration")) or 0,
        images=_images(record.get("image"), record.get("imageUrl")),
        download_urls=_streams(record),
        artists=_artist_refs(record, primary_artists),
        year=str(year) if year else None,
        language=record.get("language") or None,
        play_count=_as_int(record.get("playCount")),
        has_lyrics=_as_bool(record.get("hasLyrics")),
        url=record.get("url") or None,
    )


def format_songs(records: Iterable[Any]) -> List[Song]:
    """Normalize a list of raw songs, dropping records without an id"""
    if not isinstance(records, list):
        return []
    songs = (format_song(record) for record in records)
    return [song for song in songs if song is not None]


def format_artist(record: Any) -> Optional[Artist]:
    if not isinstance(record, dict) or not record.get("id"):
        return None

    return Artist(
        id=str(record["id"]),
        name=_text(record.get("name"), "Unknown Artist"),
        role=record.get("role") or "Artist",
        images=_images(record.get("image")),
        type=record.get("type") or "artist",
        url=record.get("url") or "",
        follower_count=_as_int(record.get("followerCount")),
        bio=record.get("bio") or None,
        dominant_language=record.get("dominantLanguage") or None,
        dominant_type=record.get("dominantType") or None,
    )


def format_artists(records: Iterable[Any]) -> List[Artist]:
    if not isinstance(records, list):
        return []
    artists = (format_artist(record) for record in records)
    return [artist for artist in artists if artist is not None]
