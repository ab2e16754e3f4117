"""LiteLLM-backed collaborators: token counting and file-name derivation."""

from __future__ import annotations

import hashlib
import logging
import re

import litellm

from ctxload.errors import LoadIOError

# Keep litellm's banner and debug chatter out of the CLI output.
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_NAME_PROMPT = """\
Suggest a short, descriptive file name (lowercase words separated by hyphens, \
no extension, at most {max_length} characters) for the following text. \
Reply with the file name only.

Text (first 2000 characters):
{text}"""

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def count_tokens(model: str, text: str) -> int:
    """Token count of *text* under *model*'s tokenizer.

    Models litellm cannot count for are estimated at four characters per token.
    """
    if not text:
        return 0
    try:
        return litellm.token_counter(model=model, text=text)
    except Exception:
        return max(1, len(text) // 4)


def slugify(text: str, max_length: int = 40) -> str:
    """Lowercase, hyphen-separated slug; a file extension, if any, is dropped."""
    stem = text.strip().splitlines()[0] if text.strip() else ""
    stem = re.sub(r"\.[A-Za-z0-9]{1,5}$", "", stem)
    slug = _SLUG_RE.sub("-", stem.lower()).strip("-")
    return slug[:max_length].rstrip("-")


def fallback_name(text: str, max_length: int = 40) -> str:
    """Deterministic name from the first words of *text*."""
    slug = slugify(" ".join(text.split()[:6]), max_length)
    if slug:
        return slug
    return "text-" + hashlib.sha256(text.encode("utf-8")).hexdigest()[:8]


def derive_file_name(
    text: str,
    model: str = "openai/gpt-4o-mini",
    max_length: int = 40,
    num_retries: int = 2,
) -> str:
    """Ask the naming model for a short file name for *text*.

    Any model failure falls back to ``fallback_name()``; only an empty text
    is an error.
    """
    if not text.strip():
        raise LoadIOError("Cannot derive a file name for empty text")
    prompt = _NAME_PROMPT.format(max_length=max_length, text=text[:2000])
    try:
        response = litellm.completion(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=20,
            temperature=0.0,
            num_retries=num_retries,
        )
        name = slugify(response.choices[0].message.content or "", max_length)
    except Exception as exc:
        logger.debug("File name generation failed (%s); using fallback", exc)
        name = ""
    return name or fallback_name(text, max_length)
