from __future__ import annotations

from flask import current_app, jsonify, request

from ..models import IMAGE_MOODS, IMAGE_STYLES, ImageGenerationRequest
from ..services.image_generation import (
    build_image_providers,
    generate_character_image,
    has_valid_replicate_token,
)
from . import bp


@bp.route("/generate-image", methods=["POST"])
def generate_image():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    if not isinstance(payload.get("characterInfo"), dict):
        return jsonify({"success": False, "error": "Character information was not provided."}), 400

    image_request = ImageGenerationRequest.from_dict(payload)
    try:
        providers = build_image_providers(current_app.config)
        result = generate_character_image(image_request, providers)
    except Exception as exc:
        current_app.logger.exception("Unexpected error during image generation")
        return jsonify({"success": False, "error": str(exc) or "Image generation failed."}), 500

    current_app.logger.info("Image generation result for '%s': %s", image_request.character.name, result.source)
    return jsonify(result.to_dict())


@bp.route("/generate-image", methods=["GET"])
def image_capabilities():
    config = current_app.config
    local_url = (config.get("LOCAL_SD_BASE_URL") or "").strip()
    return jsonify(
        {
            "availableStyles": list(IMAGE_STYLES),
            "availableMoods": list(IMAGE_MOODS),
            "description": "Generates a caricature portrait from the character's appearance.",
            "requirements": {
                "replicateApiToken": has_valid_replicate_token(config.get("REPLICATE_API_TOKEN")),
                "localStableDiffusion": (
                    f"Automatic1111 WebUI reachable at {local_url}" if local_url else "disabled"
                ),
            },
        }
    )
