"""Deterministic image prompt assembly from a character's appearance.

Appearance values come from the language model in Korean or English, so each
rule matches a handful of keyword fragments in both languages and maps them
onto a fixed English prompt fragment.
"""
from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from ..models import Appearance, CharacterProfile

UNKNOWN_MARKERS = {"알 수 없음", "unknown"}

MALE_LEAD = "handsome male man, masculine features, "
FEMALE_LEAD = "beautiful female woman, feminine features, "
BASE_PROMPT = (
    "high quality cartoon character portrait, professional digital art, "
    "clean vector style, detailed illustration"
)
QUALITY_SUFFIX = (
    ", expressive eyes, friendly smile, masterpiece, best quality, sharp focus, "
    "vibrant colors, clean white background"
)

AGE_BUCKETS: Sequence[Tuple[int, str]] = (
    (20, "young person"),
    (40, "adult person"),
    (60, "middle-aged person"),
)
ELDERLY = "elderly person"

# First matching rule wins.
HAIR_COLOR_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("금", "blonde", "blond", "golden"), "golden blonde hair"),
    (("갈", "brown"), "warm brown hair"),
    (("검", "black"), "sleek black hair"),
    (("흰", "백", "white", "silver", "grey", "gray"), "silver white hair"),
)

HAIR_STYLE_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("짧", "short"), "short hair"),
    (("긴", "long"), "long hair"),
    (("곱슬", "curly"), "curly hair"),
)

SKIN_TONE_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("밝은", "하얀", "fair", "pale"), "fair skin tone, light complexion"),
    (("어두운", "검은", "dark"), "dark skin tone, rich complexion"),
    (("태닝", "그을린", "tan"), "tanned skin, sun-kissed complexion"),
    (("중간", "보통", "medium"), "medium skin tone, natural complexion"),
    (("황", "olive"), "olive skin tone, warm complexion"),
)

# Every matching rule applies.
SKIN_DETAIL_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("여드름", "acne", "pimple"), "skin with acne, blemished skin"),
    (("주름", "wrinkle", "aged"), "wrinkled skin, aged skin texture"),
    (("잡티", "흉터", "scar", "spot"), "skin with spots, visible skin marks"),
    (("매끄", "깨끗", "smooth", "clear"), "smooth clear skin, flawless complexion"),
    (("거친", "건조", "rough", "dry"), "rough skin texture, dry skin"),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_MALE_WORD = re.compile(r"\bmale|\bm[ae]n\b|\bboy")
_FEMALE_WORD = re.compile(r"\bfemale|\bwom[ae]n|\bgirl")


def _known(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() in UNKNOWN_MARKERS:
        return None
    return cleaned


def _matches(value: str, keywords: Sequence[str]) -> bool:
    lowered = value.lower()
    return any(keyword in lowered for keyword in keywords)


def _first_match(value: Optional[str], rules: Sequence[Tuple[Tuple[str, ...], str]]) -> Optional[str]:
    known = _known(value)
    if known is None:
        return None
    for keywords, fragment in rules:
        if _matches(known, keywords):
            return fragment
    return None


def gender_fragment(gender: Optional[str]) -> str:
    known = _known(gender)
    if known is None:
        return ""
    lowered = known.lower()
    # "female" contains "male", so the female rule is checked first.
    if "여" in known or _FEMALE_WORD.search(lowered):
        return FEMALE_LEAD
    if "남" in known or _MALE_WORD.search(lowered):
        return MALE_LEAD
    return ""


def parse_age(age: Optional[str]) -> Optional[int]:
    known = _known(age)
    if known is None:
        return None
    match = _LEADING_INT.match(known)
    if not match:
        return None
    return int(match.group(1))


def age_fragment(age: Optional[str]) -> Optional[str]:
    years = parse_age(age)
    if years is None:
        return None
    for upper_bound, label in AGE_BUCKETS:
        if years < upper_bound:
            return label
    return ELDERLY


def appearance_fragments(appearance: Appearance) -> List[str]:
    """Return the descriptive fragments placed between the base prompt and the suffix."""

    fragments: List[Optional[str]] = [
        age_fragment(appearance.age),
        _first_match(appearance.hair_color, HAIR_COLOR_RULES),
        _first_match(appearance.hair_style, HAIR_STYLE_RULES),
        _first_match(appearance.skin_tone, SKIN_TONE_RULES),
    ]

    details = _known(appearance.skin_details)
    if details is not None:
        fragments.extend(
            fragment for keywords, fragment in SKIN_DETAIL_RULES if _matches(details, keywords)
        )

    return [fragment for fragment in fragments if fragment]


def build_image_prompt(character: CharacterProfile) -> str:
    appearance = character.appearance
    prompt = gender_fragment(appearance.gender) + BASE_PROMPT
    for fragment in appearance_fragments(appearance):
        prompt += f", {fragment}"
    return prompt + QUALITY_SUFFIX
