"""
Query requests and the instruction text sent to the inference service.

A QueryRequest is checked when it is built, so a by-image request without
image bytes (or a by-name request without a name) never reaches the network.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# ── Languages offered to the user ─────────────────────────────────────────────

SUPPORTED_LANGUAGES: dict[str, str] = {
    "en-US": "English",
    "hi-IN": "Hindi",
    "es-US": "Spanish",
}


class ContractViolation(ValueError):
    """A QueryRequest whose mode and payload don't fit together."""


class QueryMode(str, Enum):
    BY_NAME  = "by_name"
    BY_IMAGE = "by_image"


def detect_mime(image_bytes: bytes) -> str:
    """Sniff the image MIME type from its magic bytes (JPEG when unknown)."""
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"GIF8":
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


@dataclass(frozen=True)
class QueryRequest:
    mode: QueryMode
    language_tag: str
    product_name: Optional[str] = None
    image_bytes: Optional[bytes] = None
    image_mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "mode", QueryMode(self.mode))
        except ValueError:
            raise ContractViolation(f"Unknown query mode: {self.mode!r}") from None
        if self.language_tag not in SUPPORTED_LANGUAGES:
            raise ContractViolation(
                f"Unsupported language {self.language_tag!r}. "
                f"Choose one of: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        if self.mode is QueryMode.BY_NAME:
            if not self.product_name or not self.product_name.strip():
                raise ContractViolation("A by-name query needs a non-empty product name.")
            if self.image_bytes is not None:
                raise ContractViolation("A by-name query must not carry image bytes.")
        elif self.mode is QueryMode.BY_IMAGE:
            if not self.image_bytes:
                raise ContractViolation("A by-image query needs image bytes.")
            if not self.image_mime_type:
                raise ContractViolation("A by-image query needs an image MIME type.")
            if self.product_name is not None:
                raise ContractViolation("A by-image query must not carry a product name.")

    @classmethod
    def by_name(cls, product_name: str, language_tag: str) -> "QueryRequest":
        return cls(QueryMode.BY_NAME, language_tag, product_name=(product_name or "").strip())

    @classmethod
    def by_image(
        cls,
        image_bytes: bytes,
        language_tag: str,
        mime_type: Optional[str] = None,
    ) -> "QueryRequest":
        mime = mime_type or (detect_mime(image_bytes) if image_bytes else None)
        return cls(QueryMode.BY_IMAGE, language_tag, image_bytes=image_bytes, image_mime_type=mime)

    @property
    def label(self) -> str:
        """Short description for logs and loading messages."""
        if self.mode is QueryMode.BY_NAME:
            return self.product_name or ""
        return f"photo ({self.image_mime_type}, {len(self.image_bytes or b'')} bytes)"


# ── Payload handed to a transport ─────────────────────────────────────────────

@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: bytes

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class PromptPayload:
    instruction_text: str
    image: Optional[InlineImage] = None


# ── Templates ─────────────────────────────────────────────────────────────────

BASE_PROMPT = (
    "Provide detailed information for {subject}. "
    "Include its parent company, a brief price history since its launch "
    "(mock prices in USD, one entry per year), a list of 5-7 key ingredients, "
    "a general description of its content, and an analysis of which "
    "contents/ingredients are generally considered good or beneficial and which "
    "might be harmful or concerning. Also add any other information a customer "
    "should know. Respond in JSON format according to the schema provided."
)

IMAGE_PROMPT = "Identify the product in this image. Then, {base}"

LANGUAGE_SUFFIX = " Ensure all text is in {language_tag}."


def build_prompt(request: QueryRequest) -> PromptPayload:
    """Assemble the instruction text (and image part) for one request."""
    if request.mode is QueryMode.BY_IMAGE:
        text = IMAGE_PROMPT.format(base=BASE_PROMPT.format(subject="the product"))
        text += LANGUAGE_SUFFIX.format(language_tag=request.language_tag)
        image = InlineImage(mime_type=request.image_mime_type, data=request.image_bytes)
        return PromptPayload(instruction_text=text, image=image)

    text = BASE_PROMPT.format(subject=f'the product "{request.product_name}"')
    text += LANGUAGE_SUFFIX.format(language_tag=request.language_tag)
    return PromptPayload(instruction_text=text)
