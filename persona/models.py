"""In-memory data model shared by the services and the JSON handlers.

Nothing here is persisted: every object lives for one request. ``from_dict``
accepts the camelCase payloads the browser sends back, and ``to_dict``
produces the same shape, omitting fields that are unknown.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

UNKNOWN_NAME = "unknown"

MESSAGE_ROLES = ("user", "assistant", "system")
IMAGE_STYLES = ("caricature", "cartoon", "realistic")
IMAGE_MOODS = ("happy", "serious", "friendly", "professional")
DEFAULT_STYLE = "caricature"
DEFAULT_MOOD = "friendly"


def generate_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_field(value: object) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _clean_list(value: object) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    items: List[str] = []
    for entry in value:
        cleaned = _clean_field(entry)
        if cleaned:
            items.append(cleaned)
    return items


def _parse_datetime(value: object) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _as_mapping(value: object) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass
class Appearance:
    age: Optional[str] = None
    gender: Optional[str] = None
    height: Optional[str] = None
    build: Optional[str] = None
    hair_color: Optional[str] = None
    hair_style: Optional[str] = None
    eye_color: Optional[str] = None
    skin_tone: Optional[str] = None
    skin_details: Optional[str] = None
    facial_features: Optional[str] = None
    clothing: Optional[str] = None
    accessories: Optional[str] = None

    @classmethod
    def from_dict(cls, data: object) -> "Appearance":
        data = _as_mapping(data)
        return cls(
            age=_clean_field(data.get("age")),
            gender=_clean_field(data.get("gender")),
            height=_clean_field(data.get("height")),
            build=_clean_field(data.get("build")),
            hair_color=_clean_field(data.get("hairColor")),
            hair_style=_clean_field(data.get("hairStyle")),
            eye_color=_clean_field(data.get("eyeColor")),
            skin_tone=_clean_field(data.get("skinTone")),
            skin_details=_clean_field(data.get("skinDetails")),
            facial_features=_clean_field(data.get("facialFeatures")),
            clothing=_clean_field(data.get("clothing")),
            accessories=_clean_field(data.get("accessories")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "age": self.age,
                "gender": self.gender,
                "height": self.height,
                "build": self.build,
                "hairColor": self.hair_color,
                "hairStyle": self.hair_style,
                "eyeColor": self.eye_color,
                "skinTone": self.skin_tone,
                "skinDetails": self.skin_details,
                "facialFeatures": self.facial_features,
                "clothing": self.clothing,
                "accessories": self.accessories,
            }
        )


@dataclass
class Personality:
    traits: List[str] = field(default_factory=list)
    temperament: Optional[str] = None
    habits: List[str] = field(default_factory=list)
    speech_pattern: Optional[str] = None

    @classmethod
    def from_dict(cls, data: object) -> "Personality":
        data = _as_mapping(data)
        return cls(
            traits=_clean_list(data.get("traits")),
            temperament=_clean_field(data.get("temperament")),
            habits=_clean_list(data.get("habits")),
            speech_pattern=_clean_field(data.get("speechPattern")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"traits": list(self.traits)}
        if self.temperament is not None:
            payload["temperament"] = self.temperament
        if self.habits:
            payload["habits"] = list(self.habits)
        if self.speech_pattern is not None:
            payload["speechPattern"] = self.speech_pattern
        return payload


@dataclass
class Background:
    occupation: Optional[str] = None
    education: Optional[str] = None
    family: Optional[str] = None
    hometown: Optional[str] = None
    interests: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: object) -> "Background":
        data = _as_mapping(data)
        return cls(
            occupation=_clean_field(data.get("occupation")),
            education=_clean_field(data.get("education")),
            family=_clean_field(data.get("family")),
            hometown=_clean_field(data.get("hometown")),
            interests=_clean_list(data.get("interests")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = _compact(
            {
                "occupation": self.occupation,
                "education": self.education,
                "family": self.family,
                "hometown": self.hometown,
            }
        )
        if self.interests:
            payload["interests"] = list(self.interests)
        return payload


@dataclass
class Relationships:
    family: List[str] = field(default_factory=list)
    friends: List[str] = field(default_factory=list)
    colleagues: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: object) -> Optional["Relationships"]:
        if not isinstance(data, dict):
            return None
        return cls(
            family=_clean_list(data.get("family")),
            friends=_clean_list(data.get("friends")),
            colleagues=_clean_list(data.get("colleagues")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: list(values)
            for key, values in (
                ("family", self.family),
                ("friends", self.friends),
                ("colleagues", self.colleagues),
            )
            if values
        }


@dataclass
class CharacterProfile:
    id: str
    name: str
    appearance: Appearance = field(default_factory=Appearance)
    personality: Personality = field(default_factory=Personality)
    background: Background = field(default_factory=Background)
    relationships: Optional[Relationships] = None
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, name: Optional[str] = None) -> "CharacterProfile":
        """Return an empty profile with a fresh id and timestamps."""

        now = utcnow()
        return cls(
            id=generate_id(),
            name=_clean_field(name) or UNKNOWN_NAME,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_dict(cls, data: object) -> "CharacterProfile":
        """Build a profile from a JSON payload, filling id and name when absent."""

        data = _as_mapping(data)
        now = utcnow()
        return cls(
            id=_clean_field(data.get("id")) or generate_id(),
            name=_clean_field(data.get("name")) or UNKNOWN_NAME,
            appearance=Appearance.from_dict(data.get("appearance")),
            personality=Personality.from_dict(data.get("personality")),
            background=Background.from_dict(data.get("background")),
            relationships=Relationships.from_dict(data.get("relationships")),
            image_url=_clean_field(data.get("imageUrl")),
            created_at=_parse_datetime(data.get("createdAt")) or now,
            updated_at=_parse_datetime(data.get("updatedAt")) or now,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "appearance": self.appearance.to_dict(),
            "personality": self.personality.to_dict(),
            "background": self.background.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.image_url is not None:
            payload["imageUrl"] = self.image_url
        if self.relationships is not None:
            payload["relationships"] = self.relationships.to_dict()
        return payload


@dataclass
class ChatMessage:
    id: str
    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    character_id: Optional[str] = None

    @classmethod
    def new(cls, role: str, content: str, *, character_id: Optional[str] = None) -> "ChatMessage":
        if role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {role!r}")
        return cls(id=generate_id(), role=role, content=content, character_id=character_id)

    @classmethod
    def from_dict(cls, data: object) -> Optional["ChatMessage"]:
        if not isinstance(data, dict):
            return None
        role = data.get("role")
        content = data.get("content")
        if role not in MESSAGE_ROLES or not isinstance(content, str):
            return None
        return cls(
            id=_clean_field(data.get("id")) or generate_id(),
            role=role,
            content=content,
            timestamp=_parse_datetime(data.get("timestamp")) or utcnow(),
            character_id=_clean_field(data.get("characterId")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.character_id is not None:
            payload["characterId"] = self.character_id
        return payload


@dataclass
class ImageGenerationRequest:
    character: CharacterProfile
    style: str = DEFAULT_STYLE
    mood: str = DEFAULT_MOOD

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageGenerationRequest":
        style = data.get("style")
        mood = data.get("mood")
        return cls(
            character=CharacterProfile.from_dict(data.get("characterInfo")),
            style=style if style in IMAGE_STYLES else DEFAULT_STYLE,
            mood=mood if mood in IMAGE_MOODS else DEFAULT_MOOD,
        )


@dataclass
class ImageGenerationResult:
    success: bool
    image_url: Optional[str] = None
    prompt: Optional[str] = None
    error: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "success": self.success,
                "imageUrl": self.image_url,
                "prompt": self.prompt,
                "error": self.error,
                "source": self.source,
            }
        )


RAW_TEXT_PREVIEW_CHARS = 1000


@dataclass
class PDFAnalysisResult:
    success: bool
    character: Optional[CharacterProfile] = None
    error: Optional[str] = None
    raw_text: Optional[str] = None
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.character is not None:
            payload["characterInfo"] = self.character.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        if self.raw_text is not None:
            payload["rawText"] = self.raw_text[:RAW_TEXT_PREVIEW_CHARS]
        if self.success:
            payload["usedFallback"] = self.used_fallback
        return payload
