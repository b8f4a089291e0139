from __future__ import annotations

from flask import current_app, jsonify, request

from ..models import CharacterProfile, ChatMessage
from ..services.dialogue import format_chat_history, generate_chat_reply
from ..services.llm import get_text_generator
from . import bp


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


@bp.route("/chat", methods=["POST"])
def send_message():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    character_payload = payload.get("characterInfo")
    message = payload.get("message")

    if not isinstance(character_payload, dict):
        return jsonify({"success": False, "error": "Character information was not provided."}), 400
    if not isinstance(message, str) or not message.strip():
        return jsonify({"success": False, "error": "A message is required."}), 400

    history_payload = payload.get("chatHistory") or []
    original_text = payload.get("originalText") or ""
    if not isinstance(history_payload, list):
        history_payload = []
    if not isinstance(original_text, str):
        original_text = ""

    try:
        character = CharacterProfile.from_dict(character_payload)
        history = [m for m in (ChatMessage.from_dict(entry) for entry in history_payload) if m is not None]

        current_app.logger.info(
            "Chat request for '%s' (%d earlier message(s)): %s",
            character.name,
            len(history),
            _preview(message),
        )

        response_text = generate_chat_reply(
            character,
            message,
            generator=get_text_generator(),
            original_text=original_text,
            chat_history=format_chat_history(history, character.name),
        )

        user_message = ChatMessage.new("user", message, character_id=character.id)
        assistant_message = ChatMessage.new("assistant", response_text, character_id=character.id)
    except Exception as exc:
        current_app.logger.exception("Unexpected error while handling chat request")
        return jsonify({"success": False, "error": str(exc) or "Chat processing failed."}), 500

    current_app.logger.info("Chat reply: %s", _preview(response_text))

    return jsonify(
        {
            "success": True,
            "userMessage": user_message.to_dict(),
            "assistantMessage": assistant_message.to_dict(),
            "response": response_text,
        }
    )


@bp.route("/chat", methods=["GET"])
def chat_history():
    character_id = (request.args.get("characterId") or "").strip()
    if not character_id:
        return jsonify({"success": False, "error": "A characterId query parameter is required."}), 400

    # History lives in the browser only; the server keeps nothing between requests.
    return jsonify({"success": True, "chatHistory": [], "characterId": character_id})
