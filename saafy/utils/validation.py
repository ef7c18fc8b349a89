"""
Validation utilities for the player
Input cleaning shared by the API client and the console
"""

import re
from typing import Any, Optional, Tuple

from ..config.constants import LIMITS, ERROR_MESSAGES

_QUERY_STRIP = re.compile(r"['\";\\${}]")
_WHITESPACE = re.compile(r"\s+")
_ID_STRIP = re.compile(r"[^a-zA-Z0-9_-]")


class ValidationUtils:
    """Utility class for input validation"""

    @staticmethod
    def sanitize_search_query(query: Any) -> str:
        """Strip injection-prone characters, collapse whitespace, cap length"""
        if not isinstance(query, str):
            return ""
        query = _QUERY_STRIP.sub("", query)
        query = _WHITESPACE.sub(" ", query).strip()
        return query[: LIMITS["query_max_length"]]

    @staticmethod
    def sanitize_id(value: Any) -> str:
        """Keep only characters valid in catalogue ids"""
        if value is None or isinstance(value, bool):
            return ""
        return _ID_STRIP.sub("", str(value))

    @staticmethod
    def validate_pagination(page: Any, limit: Any) -> Tuple[int, int]:
        """Clamp page to >= 0 and limit to [1, 50]"""
        try:
            page = int(float(page))
        except (TypeError, ValueError):
            page = 0
        try:
            limit = int(float(limit))
        except (TypeError, ValueError):
            limit = LIMITS["limit_default"]
        if limit == 0:
            limit = LIMITS["limit_default"]

        page = max(LIMITS["page_min"], page)
        limit = min(LIMITS["limit_max"], max(LIMITS["limit_min"], limit))
        return page, limit

    @staticmethod
    def validate_volume(volume: int) -> Tuple[bool, Optional[str]]:
        """Validate volume percentage"""
        if not LIMITS["volume_min"] <= volume <= LIMITS["volume_max"]:
            return False, ERROR_MESSAGES["invalid_volume"]
        return True, None

    @staticmethod
    def validate_queue_index(index: int, queue_size: int) -> Tuple[bool, Optional[str]]:
        """Validate 1-based queue position"""
        if index < 1 or index > queue_size:
            return False, f"{ERROR_MESSAGES['invalid_index']} (1-{queue_size})"
        return True, None
