"""Central configuration for the prompts sent to the language model."""

from __future__ import annotations

from typing import Any, Dict

SYSTEM_PROMPTS: Dict[str, Dict[str, Any]] = {
    "character_extraction": {
        "parameters": {"max_new_tokens": 2048, "temperature": 0.2},
        "prompt_template": (
            "Extract the information about the person described in the text below and "
            "organise it as JSON.\n"
            "Information to extract:\n"
            "1. Name (name)\n"
            "2. Appearance (appearance): age, gender, height, build, hair colour, hair style, "
            "eye colour, skin tone, skin details, facial features, clothing, accessories\n"
            "3. Personality (personality): traits, temperament, habits, speech pattern\n"
            "4. Background (background): occupation, education, family, hometown, interests\n\n"
            "Write every value in the same language as the text. Leave out anything the "
            "text does not mention.\n\n"
            "Text: {text}\n\n"
            "Reply with a single JSON object in exactly this shape:\n"
            "{{\n"
            '  "name": "person name",\n'
            '  "appearance": {{\n'
            '    "age": "age",\n'
            '    "gender": "gender",\n'
            '    "height": "height",\n'
            '    "build": "build",\n'
            '    "hairColor": "hair colour",\n'
            '    "hairStyle": "hair style",\n'
            '    "eyeColor": "eye colour",\n'
            '    "skinTone": "skin tone",\n'
            '    "skinDetails": "skin details",\n'
            '    "facialFeatures": "facial features",\n'
            '    "clothing": "clothing",\n'
            '    "accessories": "accessories"\n'
            "  }},\n"
            '  "personality": {{\n'
            '    "traits": ["trait 1", "trait 2"],\n'
            '    "temperament": "temperament",\n'
            '    "habits": ["habit 1", "habit 2"],\n'
            '    "speechPattern": "speech pattern"\n'
            "  }},\n"
            '  "background": {{\n'
            '    "occupation": "occupation",\n'
            '    "education": "education",\n'
            '    "family": "family",\n'
            '    "hometown": "hometown",\n'
            '    "interests": ["interest 1", "interest 2"]\n'
            "  }}\n"
            "}}\n"
        ),
    },
    "character_chat": {
        "parameters": {"max_new_tokens": 1024, "temperature": 0.7},
        "prompt_template": (
            "You are an AI that plays the following person perfectly.\n\n"
            "=== Character profile ===\n"
            "Name: {name}\n"
            "Appearance: {appearance}\n"
            "Personality: {personality}\n"
            "Background: {background}\n\n"
            "=== Original document ===\n"
            "{original_text}\n\n"
            "=== Conversation so far ===\n"
            "{chat_history}\n\n"
            "=== Role-play guidelines ===\n"
            "1. Base your answers on the details of the person in the original document.\n"
            "2. Keep the person's speech pattern, personality and experiences consistent.\n"
            "3. Remember the earlier conversation and continue it naturally.\n"
            "4. Only answer within the person's knowledge and experience.\n"
            "5. Keep the conversation natural and human.\n\n"
            "User: {user_message}\n\n"
            "{name}: "
        ),
    },
}


def get_prompt_entry(name: str) -> Dict[str, Any]:
    """Return the prompt configuration registered under ``name``."""

    entry = SYSTEM_PROMPTS.get(name)
    if not isinstance(entry, dict) or not entry.get("prompt_template"):
        raise KeyError(f"Prompt configuration is missing the '{name}' entry.")
    return entry


def get_prompt_parameters(name: str) -> Dict[str, Any]:
    """Return the generation parameters configured for ``name``."""

    parameters = get_prompt_entry(name).get("parameters")
    if not isinstance(parameters, dict):
        return {}
    return {key: value for key, value in parameters.items() if value is not None}
