"""
Validation and sanitization utilities.

This module contains the request models for pin writes and the input checks
that must run before any external call is made.
"""

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from logic.status import PinStatus

DEFAULT_URL_TEXT = "More Info"
MAX_TITLE_LEN = 200

ZIP_PATTERN = re.compile(r"^[0-9]{5}$")


class ZipValidationError(ValueError):
    """Raised when a search query is not a usable 5-digit zip code."""


def validate_zip(query: Optional[str]) -> str:
    """Validate a zip code search query.

    Args:
        query: Raw query as typed by the user.

    Returns:
        The stripped 5-digit zip code.

    Raises:
        ZipValidationError: If the query is empty or not exactly five digits.
    """
    query = (query or "").strip()
    if not query:
        raise ZipValidationError("Please enter a zip code")
    if not ZIP_PATTERN.match(query):
        raise ZipValidationError("Please enter a valid 5-digit zip code")
    return query


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


class PinCreate(BaseModel):
    """Request model for creating a pin."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., max_length=MAX_TITLE_LEN)
    address: str = ""
    status: PinStatus = PinStatus.ACTIVE
    summary: str = ""
    url: str = ""
    url_text: str = DEFAULT_URL_TEXT
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    show_donate: bool = False
    show_volunteer: bool = False
    show_help: bool = False

    @field_validator("title", "address", "summary", "url", "url_text", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Please enter a title")
        return value

    @field_validator("url_text")
    @classmethod
    def default_url_text(cls, value: str) -> str:
        return value or DEFAULT_URL_TEXT

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class PinUpdate(BaseModel):
    """Request model for a partial pin update. Only supplied fields are sent."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, max_length=MAX_TITLE_LEN)
    address: Optional[str] = None
    status: Optional[PinStatus] = None
    summary: Optional[str] = None
    url: Optional[str] = None
    url_text: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    show_donate: Optional[bool] = None
    show_volunteer: Optional[bool] = None
    show_help: Optional[bool] = None

    @field_validator("title", "address", "summary", "url", "url_text", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            raise ValueError("Please enter a title")
        return value

    @field_validator("url_text")
    @classmethod
    def default_url_text(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            return DEFAULT_URL_TEXT
        return value

    def to_changes(self) -> Dict[str, Any]:
        """Get only the fields the caller supplied, with None values dropped."""
        changes = self.model_dump(mode="json", exclude_unset=True)
        return {key: value for key, value in changes.items() if value is not None}
