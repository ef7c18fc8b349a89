"""
Constants for the player
Centralized configuration and magic strings
"""

# Storage keys
THEME_KEY = "theme"
SESSION_PLAYED_KEY = "played_songs_session"

# Light mode colors
LIGHT_COLORS = {
    "paper": "#FAF7F2",
    "paper_dark": "#F0EBE3",
    "paper_darker": "#E5DFD7",
    "ink": "#1A1614",
    "ink_muted": "#6B635B",
    "ink_light": "#9C948B",
    "accent": "#C45C3E",
    "accent_hover": "#A94E34",
    "rule": "#E5DFD7",
}

# Dark mode colors
DARK_COLORS = {
    "paper": "#1A1614",
    "paper_dark": "#252220",
    "paper_darker": "#2F2B28",
    "ink": "#FAF7F2",
    "ink_muted": "#A8A19A",
    "ink_light": "#6B635B",
    "accent": "#E07356",
    "accent_hover": "#C45C3E",
    "rule": "#3A3633",
}

# Fonts (same for both modes)
FONTS = {
    "display": "'Syne', sans-serif",
    "primary": "'Sora', sans-serif",
    "mono": "'Space Grotesk', monospace",
}

# Limits
LIMITS = {
    "query_max_length": 200,
    "page_min": 0,
    "limit_min": 1,
    "limit_max": 50,
    "limit_default": 10,
    "volume_min": 0,
    "volume_max": 100,
    "restart_threshold_seconds": 3.0,
}

# Cache TTLs in seconds
CACHE_TTLS = {
    "default": 5 * 60,
    "song": 10 * 60,
    "album": 10 * 60,
    "artist": 10 * 60,
    "playlist": 5 * 60,
}

ARTIST_SORT_BY = ("popularity", "latest", "alphabetical")
SORT_ORDERS = ("asc", "desc")

# Error messages
ERROR_MESSAGES = {
    "invalid_song": "Invalid song",
    "no_audio": 'Cannot play "{}" - no audio available',
    "play_failed": "Failed to play song",
    "audio_failed": "Failed to play audio",
    "fetch_failed": "Could not load song details",
    "no_song_playing": "Nothing is playing",
    "queue_empty": "Queue is empty",
    "invalid_index": "Invalid queue position",
    "invalid_volume": "Volume must be between 0 and 100",
    "invalid_query": "Invalid search query",
    "unknown_language": "Unknown language",
    "no_results": "No results",
    "unknown_command": "Unknown command, type 'help'",
}

# Success messages
SUCCESS_MESSAGES = {
    "added_to_queue": "Added to queue: {}",
    "removed_from_queue": "Removed from queue: {}",
    "queue_cleared": "Queue cleared",
    "theme_changed": "Theme: {}",
    "repeat_mode": "Repeat: {}",
    "shuffle": "Shuffle: {}",
    "volume_set": "Volume: {}%",
}

# Event names published by the player
EVENTS = {
    "song_changed": "song_changed",
    "state_changed": "playback_state_changed",
    "queue_changed": "queue_changed",
    "error": "playback_error",
}
