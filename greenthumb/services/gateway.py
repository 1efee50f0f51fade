"""
AI Gateway: one object that bundles the four remote operations around a
single OpenRouter client.

Usage:
    gateway = PlantGateway()
    plant = await gateway.identify(image_bytes)
    result = await gateway.diagnose(image_bytes, location_hint="94043")
"""
import logging
from typing import Any, Dict, Optional, Sequence

from greenthumb.models import ChatReply, DiagnosisResult, PlantInfo, SearchResult
from greenthumb.services.chat import chat_turn
from greenthumb.services.diagnosis import diagnose_plant
from greenthumb.services.identification import identify_plant
from greenthumb.services.product_search import search_products
from greenthumb.services.services import create_gemini_client

logger = logging.getLogger(__name__)


class PlantGateway:
    """Stateless request/response wrapper; failures raise the typed gateway errors."""

    def __init__(self, client=None):
        """
        Args:
            client: AsyncOpenAI-compatible client (defaults to the OpenRouter client
                built from config; None when no API key is set)
        """
        self.client = client if client is not None else create_gemini_client()

    async def identify(self, image_bytes: bytes) -> PlantInfo:
        return await identify_plant(image_bytes, self.client)

    async def diagnose(self, image_bytes: bytes, location_hint: Optional[str] = None) -> DiagnosisResult:
        return await diagnose_plant(image_bytes, self.client, location_hint=location_hint)

    async def search_products(self, diagnosis_text: str) -> SearchResult:
        return await search_products(diagnosis_text, self.client)

    async def chat_turn(self, message: str, history: Sequence[Dict[str, Any]]) -> ChatReply:
        return await chat_turn(message, history, self.client)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
