import logging
from typing import Any, Dict, List, Optional, Sequence

from greenthumb.exceptions import ChatFailed
from greenthumb.models import ChatReply, GroundingMetadata
from greenthumb.prompts import CHAT_SYSTEM_INSTRUCTION
from greenthumb.services.gemini import (
    TRANSPORT_ERRORS,
    create_completion,
    extract_grounding,
    message_text,
)
from greenthumb.utils.text_processing import preview

logger = logging.getLogger(__name__)

# Session roles -> chat-completions roles
ROLE_MAP = {"user": "user", "model": "assistant"}


def history_to_messages(history: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Replay role/parts turns as chat-completions messages, preserving order."""
    messages = []
    for turn in history:
        role = ROLE_MAP.get(turn.get("role"))
        if role is None:
            raise ValueError(f"Unknown chat role: {turn.get('role')!r}")
        text = "".join(part.get("text", "") for part in turn.get("parts", []))
        messages.append({"role": role, "content": text})
    return messages


async def chat_turn(
    message: str,
    history: Optional[Sequence[Dict[str, Any]]],
    client,
) -> ChatReply:
    """Send one chat turn.

    The remote side keeps no conversation state, so the whole prior history
    is replayed on every call after the fixed system instruction.
    """
    history = history or []
    logger.info(f"Chat turn with {len(history)} prior messages: {preview(message, 80)}")

    if client is None:
        raise ChatFailed("Chat service not configured")

    try:
        messages = [{"role": "system", "content": CHAT_SYSTEM_INSTRUCTION}]
        messages.extend(history_to_messages(history))
        messages.append({"role": "user", "content": message})

        reply = await create_completion(client, messages, web_search=True)
    except TRANSPORT_ERRORS as e:
        raise ChatFailed(f"Chat request failed: {e}") from e

    text = message_text(reply)
    if not text.strip():
        raise ChatFailed("No response text received from Gemini.")

    chunks = extract_grounding(reply)
    grounding = GroundingMetadata(chunks=chunks) if chunks else None
    return ChatReply(text=text, grounding_metadata=grounding)
