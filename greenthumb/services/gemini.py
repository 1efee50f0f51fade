"""
Shared plumbing for Gemini calls made through OpenRouter's
OpenAI-compatible chat-completions endpoint.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
import openai

from greenthumb.config import API_TIMEOUT, GEMINI_MODEL
from greenthumb.models import GroundingChunk
from greenthumb.services.services import OPENROUTER_HEADERS
from greenthumb.utils.image import to_data_uri, to_jpeg_bytes

logger = logging.getLogger(__name__)

# Everything a remote call can fail with before the response body is inspected.
# ValueError covers unreadable images and malformed response envelopes.
TRANSPORT_ERRORS = (openai.OpenAIError, httpx.HTTPError, asyncio.TimeoutError, ValueError)

# OpenRouter plugin that lets the model browse live sources
WEB_SEARCH_PLUGIN = {"id": "web"}


def image_part(image_bytes: bytes) -> Dict[str, Any]:
    """Inline image content part (JPEG data URI)."""
    jpeg = to_jpeg_bytes(image_bytes)
    return {"type": "image_url", "image_url": {"url": to_data_uri(jpeg)}}


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


async def create_completion(
    client,
    messages: List[Dict[str, Any]],
    *,
    response_format: Optional[Dict[str, Any]] = None,
    web_search: bool = False,
    model: Optional[str] = None,
):
    """Send one chat-completions request and return the first choice's message."""
    kwargs: Dict[str, Any] = {
        "model": model or GEMINI_MODEL,
        "messages": messages,
        "extra_headers": OPENROUTER_HEADERS,
    }
    if response_format is not None:
        kwargs["response_format"] = response_format
    if web_search:
        kwargs["extra_body"] = {"plugins": [WEB_SEARCH_PLUGIN]}

    response = await asyncio.wait_for(
        client.chat.completions.create(**kwargs),
        timeout=API_TIMEOUT,
    )

    choices = getattr(response, "choices", None)
    if not choices:
        raise ValueError("Response contained no choices")
    message = getattr(choices[0], "message", None)
    if message is None:
        raise ValueError("Response choice contained no message")
    return message


def message_text(message) -> str:
    content = _get(message, "content")
    if isinstance(content, str):
        return content
    return ""


def extract_grounding(message) -> List[GroundingChunk]:
    """Map every `url_citation` annotation to a GroundingChunk, in order.

    Nothing is deduplicated or dropped: products are paired with citations by
    position, so the list must stay intact. Other annotation types are ignored.
    """
    chunks: List[GroundingChunk] = []
    for annotation in _get(message, "annotations") or []:
        if _get(annotation, "type") != "url_citation":
            continue
        citation = _get(annotation, "url_citation")
        chunks.append(GroundingChunk(
            title=_as_text(_get(citation, "title")),
            uri=_as_text(_get(citation, "url")),
        ))
    return chunks


def _get(obj: Any, key: str) -> Any:
    # Works for SDK objects and for plain dicts left in `model_extra`
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    value = getattr(obj, key, None)
    if value is None:
        extra = getattr(obj, "model_extra", None)
        if isinstance(extra, dict):
            value = extra.get(key)
    return value


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
