from __future__ import annotations

from typing import Iterable, Optional

from flask import current_app

from system_prompts import get_prompt_entry, get_prompt_parameters

from ..models import ChatMessage, CharacterProfile
from .llm import TextGenerator
from .prompt_formatter import format_appearance, format_background, format_personality

PROMPT_KEY = "character_chat"
ORIGINAL_TEXT_LIMIT = 2000
APOLOGY_REPLY = "Sorry, I can't respond right now."
USER_LABEL = "User"


def format_chat_history(messages: Iterable[ChatMessage], character_name: str) -> str:
    """Render caller-supplied history as ``Speaker: content`` lines."""

    lines = []
    for message in messages:
        speaker = USER_LABEL if message.role == "user" else character_name
        lines.append(f"{speaker}: {message.content}")
    return "\n".join(lines)


def build_chat_prompt(
    character: CharacterProfile,
    user_message: str,
    *,
    original_text: str = "",
    chat_history: str = "",
) -> str:
    entry = get_prompt_entry(PROMPT_KEY)
    return entry["prompt_template"].format(
        name=character.name,
        appearance=format_appearance(character.appearance),
        personality=format_personality(character.personality),
        background=format_background(character.background),
        original_text=(original_text or "")[:ORIGINAL_TEXT_LIMIT],
        chat_history=chat_history or "",
        user_message=user_message,
    )


def generate_chat_reply(
    character: CharacterProfile,
    user_message: str,
    *,
    generator: Optional[TextGenerator],
    original_text: str = "",
    chat_history: str = "",
) -> str:
    """Answer ``user_message`` in the voice of ``character``.

    Never raises: provider failures and empty replies turn into
    :data:`APOLOGY_REPLY`.
    """

    if generator is None:
        current_app.logger.warning("No language model configured; returning apology reply.")
        return APOLOGY_REPLY

    prompt = build_chat_prompt(
        character,
        user_message,
        original_text=original_text,
        chat_history=chat_history,
    )

    try:
        reply = generator.generate_response(prompt, **get_prompt_parameters(PROMPT_KEY))
    except Exception as exc:
        current_app.logger.warning("Chat reply generation failed; returning apology. Error: %s", exc)
        return APOLOGY_REPLY

    reply = (reply or "").strip()
    return reply or APOLOGY_REPLY
