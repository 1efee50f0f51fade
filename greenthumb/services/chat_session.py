"""
Chat Session - ordered, append-only conversation history

Messages live for the lifetime of the session only. The full history is
replayed to the model on every turn, so ordering (oldest first) is what
keeps the conversation coherent.
"""
import re
import time
import logging
from typing import Dict, List, Optional, Union

from greenthumb.models import ChatMessage, GroundingMetadata, ImageSegment

logger = logging.getLogger(__name__)

# Inline image reference embedded by the model: ![alt](url)
IMAGE_MARKUP_PATTERN = re.compile(r"!\[(.*?)\]\((.*?)\)")

Segment = Union[str, ImageSegment]


def now_ms() -> int:
    return int(time.time() * 1000)


def segments_of(text: str) -> List[Segment]:
    """Split text into literal strings and ImageSegment(alt, url), in order of appearance.

    Text without image markup comes back as a single literal equal to the input.
    """
    if not IMAGE_MARKUP_PATTERN.search(text):
        return [text]

    segments: List[Segment] = []
    position = 0
    for match in IMAGE_MARKUP_PATTERN.finditer(text):
        if match.start() > position:
            segments.append(text[position:match.start()])
        segments.append(ImageSegment(alt=match.group(1), url=match.group(2)))
        position = match.end()
    if position < len(text):
        segments.append(text[position:])
    return segments


class ChatSession:
    """Owns the ChatHistory and converts it for the gateway."""

    def __init__(self, greeting: Optional[str] = None):
        self._messages: List[ChatMessage] = []
        if greeting:
            self.append_model(greeting)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append_user(self, text: str) -> ChatMessage:
        """Commit the user's message immediately; it is never rolled back."""
        message = ChatMessage(role="user", text=text, timestamp=now_ms())
        self._messages.append(message)
        return message

    def append_model(
        self,
        text: str,
        grounding_metadata: Optional[GroundingMetadata] = None,
    ) -> ChatMessage:
        message = ChatMessage(
            role="model",
            text=text,
            timestamp=now_ms(),
            grounding_metadata=grounding_metadata,
        )
        self._messages.append(message)
        return message

    def to_history_payload(self) -> List[Dict]:
        """Role/parts turns for the gateway, oldest first, text unchanged."""
        return [
            {"role": message.role, "parts": [{"text": message.text}]}
            for message in self._messages
        ]
