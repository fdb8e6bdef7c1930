"""Common validation helpers for user-supplied input.

URLs, Wayback timestamps and CDX dates are checked here so both front ends
reject bad input with the same messages.
"""

import re
from typing import Optional, Type, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError

from waybackmcp.domain.models.common import CdxDate, TargetUrl, WaybackTimestamp

ModelT = TypeVar("ModelT", bound=BaseModel)

TIMESTAMP_PATTERN = re.compile(r"^\d{4,14}$")
DATE_PATTERN = re.compile(r"^\d{8}$")


class InvalidInputError(ValueError):
    """Raised when user input fails validation."""


def validate_url(url: str) -> TargetUrl:
    """Checks that `url` is an absolute http(s) URL and returns it stripped."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError(f"Invalid URL: {url!r}")
    return TargetUrl(candidate)


def format_timestamp(timestamp: Optional[str]) -> Optional[WaybackTimestamp]:
    """Normalizes a Wayback timestamp.

    `None`, an empty string and "latest" all mean "most recent capture" and
    map to None. Anything else must be 4 to 14 digits (YYYY[MM[DD[hh[mm[ss]]]]]).
    """
    if timestamp is None:
        return None
    value = timestamp.strip()
    if not value or value.lower() == "latest":
        return None
    if not TIMESTAMP_PATTERN.match(value):
        raise InvalidInputError("Timestamp must be in YYYYMMDDhhmmss format or 'latest'")
    return WaybackTimestamp(value)


def normalize_date(date: Optional[str], field_name: str = "Date") -> Optional[CdxDate]:
    """Turns YYYY-MM-DD into the YYYYMMDD form expected by the CDX API."""
    if not date:
        return None
    compact = date.strip().replace("-", "")
    if not DATE_PATTERN.match(compact):
        raise InvalidInputError(f"{field_name} date must be in YYYY-MM-DD format")
    return CdxDate(compact)


def validate_input(model: Type[ModelT], data: Optional[dict]) -> ModelT:
    """Validates raw tool arguments against a pydantic model.

    Raises:
        InvalidInputError: listing every failing field, one per line.
    """
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        issues = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "input"
            issues.append(f"{location}: {error['msg']}")
        raise InvalidInputError("Validation failed:\n" + "\n".join(issues)) from e
