from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from flask import current_app

from api_handler import LLMProviderError
from system_prompts import get_prompt_entry, get_prompt_parameters

from ..models import Appearance, Background, CharacterProfile, UNKNOWN_NAME
from .llm import TextGenerator

PROMPT_KEY = "character_extraction"


class ProfileExtractionError(RuntimeError):
    """Raised when the language model cannot be reached for profile extraction."""


@dataclass
class ProfileExtractionResult:
    profile: CharacterProfile
    used_fallback: bool
    prompt: Optional[str] = None


def extract_character_profile(text: str, generator: Optional[TextGenerator]) -> ProfileExtractionResult:
    """Structure the document ``text`` into a character profile.

    An unparseable reply yields the default profile instead of an error; only
    a provider failure is fatal. Without a configured ``generator`` the
    keyword heuristics are used.
    """

    cleaned_text = (text or "").strip()
    if generator is None:
        current_app.logger.info("No language model configured; using heuristic profile extraction.")
        return ProfileExtractionResult(profile=parse_profile_heuristically(cleaned_text), used_fallback=True)

    entry = get_prompt_entry(PROMPT_KEY)
    final_prompt = entry["prompt_template"].format(text=cleaned_text)

    try:
        response_text = generator.generate_response(final_prompt, **get_prompt_parameters(PROMPT_KEY))
    except LLMProviderError as exc:
        current_app.logger.warning("Character extraction request failed: %s", exc)
        raise ProfileExtractionError(f"Unable to extract character information: {exc}") from exc

    parsed = _extract_json_object(response_text)
    if parsed is None:
        current_app.logger.warning(
            "Character extraction reply did not contain a JSON object; returning default profile."
        )
        return ProfileExtractionResult(profile=CharacterProfile.create(), used_fallback=True, prompt=final_prompt)

    profile = CharacterProfile.create()
    ingested = CharacterProfile.from_dict(parsed)
    profile.name = ingested.name
    profile.appearance = ingested.appearance
    profile.personality = ingested.personality
    profile.background = ingested.background
    profile.relationships = ingested.relationships
    return ProfileExtractionResult(profile=profile, used_fallback=False, prompt=final_prompt)


def _extract_json_object(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    text = (raw_text or "").strip()
    if not text:
        return None

    fence_match = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    candidates = []
    if fence_match:
        candidates.append(fence_match.group(1))
    candidates.append(text)

    for candidate in candidates:
        for snippet in (_first_balanced_object(candidate), _outermost_braces(candidate)):
            if not snippet:
                continue
            try:
                parsed = json.loads(snippet)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    current_app.logger.warning("Unable to parse character extraction output as JSON: %s", text[:500])
    return None


def _first_balanced_object(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _outermost_braces(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


_NAME_PATTERNS = (
    re.compile(r"이름[:\s]*([가-힣a-zA-Z ]+)"),
    re.compile(r"성명[:\s]*([가-힣a-zA-Z ]+)"),
    re.compile(r"Name[:\s]*([a-zA-Z ]+)", re.IGNORECASE),
)
_AGE_PATTERNS = (
    re.compile(r"나이[:\s]*(\d+)"),
    re.compile(r"Age[:\s]*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)세"),
)
_OCCUPATION_PATTERNS = (
    re.compile(r"직업[:\s]*([가-힣a-zA-Z ]+)"),
    re.compile(r"직무[:\s]*([가-힣a-zA-Z ]+)"),
    re.compile(r"Occupation[:\s]*([a-zA-Z ]+)", re.IGNORECASE),
    re.compile(r"Job[:\s]*([a-zA-Z ]+)", re.IGNORECASE),
)


def _first_group(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def parse_profile_heuristically(text: str) -> CharacterProfile:
    """Pull name, age and occupation out of labelled lines in ``text``."""

    profile = CharacterProfile.create(_first_group(_NAME_PATTERNS, text) or UNKNOWN_NAME)
    age = _first_group(_AGE_PATTERNS, text)
    profile.appearance = Appearance(age=f"{age}세" if age else None)
    profile.background = Background(occupation=_first_group(_OCCUPATION_PATTERNS, text))
    return profile
