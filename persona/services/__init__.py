"""Service layer for profile extraction, dialogue and portrait generation."""

from __future__ import annotations

from .dialogue import APOLOGY_REPLY, generate_chat_reply  # noqa: F401
from .image_generation import generate_character_image  # noqa: F401
from .profile_extraction import ProfileExtractionError, extract_character_profile  # noqa: F401

__all__ = [
    "APOLOGY_REPLY",
    "ProfileExtractionError",
    "extract_character_profile",
    "generate_character_image",
    "generate_chat_reply",
]
