"""Thin wrapper around the Gemini image API used by the director core."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterable, List, Optional, Union

from google import genai
from google.genai import types as Gtypes
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ("image/jpeg", "image/png", "image/webp")
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)

_clients: dict[str, genai.Client] = {}


class ReferenceImageError(ValueError):
    """A Vision Seed image could not be decoded."""


@dataclass
class GeneratedImage:
    mime_type: str
    data: str  # base64


@dataclass
class ImageGenerationResult:
    images: List[GeneratedImage] = field(default_factory=list)
    text: str = ""


def _get_client(api_key: str) -> genai.Client:
    client = _clients.get(api_key)
    if client is None:
        client = genai.Client(api_key=api_key)
        _clients[api_key] = client
    return client


def split_data_url(value: str) -> tuple[Optional[str], str]:
    """Return ``(mime_type, base64_data)``; bare base64 strings have no MIME type."""
    match = _DATA_URL_RE.match(value.strip())
    if match:
        return match.group("mime"), match.group("data")
    return None, value.strip()


def decode_reference_image(value: str) -> Image.Image:
    """Load a ``data:`` URL (or bare base64 PNG/JPEG) as a PIL image."""
    mime_type, encoded = split_data_url(value)
    if mime_type and mime_type not in ALLOWED_FORMATS:
        raise ReferenceImageError(f"Invalid image format. Allowed: {ALLOWED_FORMATS}")

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ReferenceImageError("Reference image is not valid base64") from exc

    if len(data) > MAX_FILE_SIZE:
        raise ReferenceImageError(f"Image size exceeds {MAX_FILE_SIZE / (1024 * 1024)}MB limit")

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ReferenceImageError(f"Failed to load image: {exc}") from exc
    return image


def pil_to_part(image: Image.Image) -> Gtypes.Part:
    buf = BytesIO()
    image.save(buf, format="PNG")
    return Gtypes.Part.from_bytes(data=buf.getvalue(), mime_type="image/png")


def _collect(response) -> ImageGenerationResult:
    result = ImageGenerationResult()
    texts: list[str] = []
    for candidate in getattr(response, "candidates", []) or []:
        content = getattr(candidate, "content", None)
        if not content:
            continue
        for part in getattr(content, "parts", []) or []:
            inline = getattr(part, "inline_data", None)
            if inline and getattr(inline, "data", None):
                result.images.append(
                    GeneratedImage(
                        mime_type=inline.mime_type or "image/png",
                        data=base64.b64encode(inline.data).decode("utf-8"),
                    )
                )
            elif getattr(part, "text", None):
                texts.append(part.text)
    result.text = "".join(texts).strip()
    return result


async def generate_images(
    *,
    api_key: str,
    model: str,
    prompt: str,
    references: Iterable[Image.Image] = (),
    system_instruction: Optional[str] = None,
) -> ImageGenerationResult:
    """Call the Gemini image model with the prompt plus reference images; collect images and text."""
    contents: list[Union[str, Gtypes.Part]] = [prompt, *(pil_to_part(image) for image in references)]
    config = Gtypes.GenerateContentConfig(
        system_instruction=system_instruction,
        response_modalities=["IMAGE", "TEXT"],
    )

    logger.info("Gemini image generation with model %s and %d reference(s)", model, len(contents) - 1)
    response = await _get_client(api_key).aio.models.generate_content(
        model=model,
        contents=contents,
        config=config,
    )
    return _collect(response)


__all__ = [
    "ALLOWED_FORMATS",
    "GeneratedImage",
    "ImageGenerationResult",
    "MAX_FILE_SIZE",
    "ReferenceImageError",
    "decode_reference_image",
    "generate_images",
    "pil_to_part",
    "split_data_url",
]
