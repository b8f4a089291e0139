"""Portrait generation through an ordered chain of image providers.

Providers are tried one after another until one returns an image:

1. Replicate (SDXL, with a single FLUX retry on a content-policy rejection)
2. a local Automatic1111 Stable Diffusion server
3. a placeholder avatar derived from the character's name

The placeholder never fails, so :func:`generate_character_image` always
reports success to its caller.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union
from urllib.parse import quote

import replicate
import requests
from flask import current_app

from ..models import ImageGenerationRequest, ImageGenerationResult
from .image_prompt import build_image_prompt

PRIMARY_MODEL = "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
SAFE_MODEL = "black-forest-labs/flux-schnell:bf2f2e683d03a9549f484a37a0df1581072b17c0b0db65c2b1526a3557ddbaf9"

PRIMARY_NEGATIVE_PROMPT = (
    "nsfw, inappropriate, adult, sexual, nude, realistic, ugly, deformed, low quality, "
    "blurry, bad anatomy, worst quality, jpeg artifacts"
)
SAFE_PROMPT = (
    "high quality cartoon character, professional digital art, clean style, friendly face, masterpiece"
)
LOCAL_NEGATIVE_PROMPT = "ugly, deformed, nsfw, low quality, blurry, distorted"
CONTENT_POLICY_MARKER = "NSFW"

PLACEHOLDER_URL_TEMPLATE = (
    "https://ui-avatars.com/api/?name={name}&size=512&background=random&color=fff&format=png"
)
PLACEHOLDER_PROMPT = "Placeholder image (configure an image generation API to render portraits)"

_SAMPLE_REPLICATE_TOKENS = {"your_replicate_api_token_here"}


class ImageProviderError(RuntimeError):
    """Raised when an image provider cannot produce an image."""


class ContentPolicyError(ImageProviderError):
    """Raised when a provider rejects the prompt under its content policy."""


@dataclass
class GeneratedImage:
    image_url: str
    prompt: str
    source: str


@dataclass
class ExhaustedFallback:
    errors: List[str] = field(default_factory=list)


ChainOutcome = Union[GeneratedImage, ExhaustedFallback]


class ImageProvider(Protocol):
    name: str

    def generate(self, prompt: str) -> GeneratedImage:
        ...


def _random_seed() -> int:
    return random.randint(0, 999_999)


def _first_image_url(output: Any) -> str:
    if isinstance(output, (list, tuple)):
        output = output[0] if output else None
    url = getattr(output, "url", output)
    if isinstance(url, str) and url:
        return url
    raise ImageProviderError("The image provider did not return an image URL.")


class ReplicateImageProvider:
    """Hosted generation on Replicate with a content-policy escape hatch."""

    name = "replicate"

    def __init__(self, api_token: str, *, client: Optional[Any] = None) -> None:
        self._client = client if client is not None else replicate.Client(api_token=api_token)

    def generate(self, prompt: str) -> GeneratedImage:
        inputs = {
            "prompt": prompt,
            "negative_prompt": PRIMARY_NEGATIVE_PROMPT,
            "width": 1024,
            "height": 1024,
            "num_inference_steps": 50,
            "guidance_scale": 8.0,
            "scheduler": "K_EULER",
            "seed": _random_seed(),
        }
        try:
            image_url = self._run(PRIMARY_MODEL, inputs)
        except ContentPolicyError as exc:
            current_app.logger.warning("Primary image model rejected the prompt; trying the safe model. Error: %s", exc)
            return self._generate_safe()
        return GeneratedImage(image_url=image_url, prompt=prompt, source=self.name)

    def _generate_safe(self) -> GeneratedImage:
        inputs = {
            "prompt": SAFE_PROMPT,
            "width": 1024,
            "height": 1024,
            "num_outputs": 1,
            "num_inference_steps": 8,
            "guidance_scale": 3.5,
            "seed": _random_seed(),
        }
        image_url = self._run(SAFE_MODEL, inputs)
        return GeneratedImage(image_url=image_url, prompt=SAFE_PROMPT, source=f"{self.name}-safe")

    def _run(self, model: str, inputs: Dict[str, Any]) -> str:
        try:
            output = self._client.run(model, input=inputs, use_file_output=False)
        except Exception as exc:
            message = str(exc)
            if CONTENT_POLICY_MARKER in message:
                raise ContentPolicyError(message) from exc
            raise ImageProviderError(f"Replicate call to {model.split(':')[0]} failed: {message}") from exc
        return _first_image_url(output)


class LocalStableDiffusionProvider:
    """Automatic1111 WebUI ``txt2img`` endpoint."""

    name = "local"

    def __init__(self, base_url: str, *, timeout: Optional[float] = 120.0) -> None:
        self.endpoint = f"{base_url.rstrip('/')}/sdapi/v1/txt2img"
        self.timeout = timeout

    def generate(self, prompt: str) -> GeneratedImage:
        payload = {
            "prompt": prompt,
            "negative_prompt": LOCAL_NEGATIVE_PROMPT,
            "width": 512,
            "height": 512,
            "steps": 30,
            "cfg_scale": 7,
            "sampler_name": "DPM++ 2M Karras",
            "batch_size": 1,
            "n_iter": 1,
        }
        try:
            response = requests.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ImageProviderError(f"Local Stable Diffusion request failed: {exc}") from exc

        if not response.ok:
            raise ImageProviderError(f"Local Stable Diffusion API error {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ImageProviderError("Local Stable Diffusion returned invalid JSON.") from exc

        images = data.get("images") if isinstance(data, dict) else None
        if not isinstance(images, list) or not images or not isinstance(images[0], str) or not images[0]:
            raise ImageProviderError("Local Stable Diffusion response did not contain an image.")

        return GeneratedImage(image_url=f"data:image/png;base64,{images[0]}", prompt=prompt, source=self.name)


def has_valid_replicate_token(token: Optional[str]) -> bool:
    token = (token or "").strip()
    return bool(token) and token not in _SAMPLE_REPLICATE_TOKENS and token.startswith("r8_")


def build_image_providers(config: Mapping[str, Any]) -> List[ImageProvider]:
    """Return the configured providers in fallback order."""

    providers: List[ImageProvider] = []
    token = config.get("REPLICATE_API_TOKEN")
    if has_valid_replicate_token(token):
        providers.append(ReplicateImageProvider(token.strip()))

    local_url = (config.get("LOCAL_SD_BASE_URL") or "").strip()
    if local_url:
        providers.append(LocalStableDiffusionProvider(local_url, timeout=config.get("LOCAL_SD_TIMEOUT")))

    return providers


def placeholder_image_url(name: str) -> str:
    return PLACEHOLDER_URL_TEMPLATE.format(name=quote(name, safe=""))


def run_fallback_chain(prompt: str, providers: Sequence[ImageProvider]) -> ChainOutcome:
    """Try ``providers`` in order and return the first image, or the collected errors."""

    errors: List[str] = []
    for provider in providers:
        try:
            image = provider.generate(prompt)
        except ImageProviderError as exc:
            current_app.logger.warning("Image provider '%s' failed; moving to the next fallback. Error: %s", provider.name, exc)
            errors.append(f"{provider.name}: {exc}")
            continue
        current_app.logger.info("Image generated by provider '%s'.", image.source)
        return image
    return ExhaustedFallback(errors=errors)


def generate_character_image(
    request: ImageGenerationRequest,
    providers: Sequence[ImageProvider],
) -> ImageGenerationResult:
    prompt = build_image_prompt(request.character)
    current_app.logger.info(
        "Generating %s/%s portrait for '%s' with %d provider(s).",
        request.style,
        request.mood,
        request.character.name,
        len(providers),
    )

    outcome = run_fallback_chain(prompt, providers)
    if isinstance(outcome, GeneratedImage):
        return ImageGenerationResult(
            success=True,
            image_url=outcome.image_url,
            prompt=outcome.prompt,
            source=outcome.source,
        )

    current_app.logger.info("All image providers failed or are unconfigured; using placeholder avatar.")
    return ImageGenerationResult(
        success=True,
        image_url=placeholder_image_url(request.character.name),
        prompt=PLACEHOLDER_PROMPT,
        source="placeholder",
    )
