"""Flatten profile sections into the strings embedded in chat prompts.

The output is pasted verbatim into the role-play prompt, so field order and
labels are fixed.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..models import Appearance, Background, Personality

NO_APPEARANCE = "No appearance information"
NO_PERSONALITY = "No personality information"
NO_BACKGROUND = "No background information"

_FieldValue = Union[Optional[str], Sequence[str]]


def _join_fragments(pairs: Iterable[Tuple[str, _FieldValue]], fallback: str) -> str:
    parts: List[str] = []
    for label, value in pairs:
        if value is None:
            continue
        if isinstance(value, str):
            parts.append(f"{label}: {value}")
        elif value:
            parts.append(f"{label}: {', '.join(value)}")
    return ", ".join(parts) or fallback


def format_appearance(appearance: Appearance) -> str:
    return _join_fragments(
        (
            ("Age", appearance.age),
            ("Gender", appearance.gender),
            ("Height", appearance.height),
            ("Build", appearance.build),
            ("Hair colour", appearance.hair_color),
            ("Hair style", appearance.hair_style),
            ("Eye colour", appearance.eye_color),
            ("Skin tone", appearance.skin_tone),
            ("Skin details", appearance.skin_details),
            ("Facial features", appearance.facial_features),
            ("Clothing", appearance.clothing),
            ("Accessories", appearance.accessories),
        ),
        NO_APPEARANCE,
    )


def format_personality(personality: Personality) -> str:
    return _join_fragments(
        (
            ("Traits", personality.traits),
            ("Temperament", personality.temperament),
            ("Habits", personality.habits),
            ("Speech pattern", personality.speech_pattern),
        ),
        NO_PERSONALITY,
    )


def format_background(background: Background) -> str:
    return _join_fragments(
        (
            ("Occupation", background.occupation),
            ("Education", background.education),
            ("Family", background.family),
            ("Hometown", background.hometown),
            ("Interests", background.interests),
        ),
        NO_BACKGROUND,
    )
