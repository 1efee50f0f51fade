"""
Plant Assistant Orchestrator

Single entry point for the presentation layer. Each use case runs
validate -> clear prior state -> gateway call -> apply result, and keeps its
own loading/error flags:

1. Identify  - photo -> PlantInfo
2. Diagnose  - photo (+ optional zip code) -> DiagnosisResult
3. Products  - diagnosis text -> SearchResult (only when the plant is not healthy)
4. Garden    - save / remove identified plants (write-through to the store)
5. Chat      - conversational turns with replayed history

Usage:
    from greenthumb.services.orchestrator import PlantAssistant

    assistant = PlantAssistant()
    await assistant.start()
    await assistant.identify(image_bytes)
    if assistant.can_save:
        await assistant.save_identified()
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from greenthumb.config import (
    CHAT_ERROR_MESSAGE,
    CHAT_GREETING,
    DIAGNOSE_ERROR_MESSAGE,
    IDENTIFY_ERROR_MESSAGE,
    LOCATION_CODE_ERROR_MESSAGE,
)
from greenthumb.exceptions import GatewayError, ValidationError
from greenthumb.models import ChatMessage, DiagnosisResult, PlantInfo, SavedPlant, SearchResult
from greenthumb.services.chat_session import ChatSession
from greenthumb.services.garden import Garden
from greenthumb.services.garden_store import GardenStore
from greenthumb.services.gateway import PlantGateway
from greenthumb.utils.text_processing import validate_location_code

logger = logging.getLogger(__name__)


class RequestSlot:
    """Last-request-wins guard for one piece of state.

    `arm()` hands out a token when a request starts; only the holder of the
    latest token may write its result back.
    """

    def __init__(self):
        self._generation = 0

    def arm(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation


@dataclass
class IdentifyState:
    result: Optional[PlantInfo] = None
    image: Optional[bytes] = None
    is_loading: bool = False
    error: Optional[str] = None
    slot: RequestSlot = field(default_factory=RequestSlot, repr=False)


@dataclass
class DiagnoseState:
    result: Optional[DiagnosisResult] = None
    image: Optional[bytes] = None
    location_code: str = ""
    location_error: Optional[str] = None  # field-level validation message
    is_loading: bool = False
    error: Optional[str] = None
    slot: RequestSlot = field(default_factory=RequestSlot, repr=False)


@dataclass
class ProductSearchState:
    result: Optional[SearchResult] = None
    is_searching: bool = False
    slot: RequestSlot = field(default_factory=RequestSlot, repr=False)


@dataclass
class ChatState:
    session: ChatSession
    pending: int = 0

    @property
    def is_loading(self) -> bool:
        return self.pending > 0

    @property
    def messages(self) -> List[ChatMessage]:
        return self.session.messages


class PlantAssistant:
    """Use-case coordinator between the gateway, the garden and the chat session."""

    def __init__(
        self,
        gateway: Optional[PlantGateway] = None,
        store: Optional[GardenStore] = None,
        chat_session: Optional[ChatSession] = None,
    ):
        """
        Args:
            gateway: AI gateway (defaults to the OpenRouter-backed PlantGateway)
            store: garden store (defaults to the sqlite file from config)
            chat_session: chat history (defaults to a session seeded with the greeting)
        """
        self.gateway = gateway or PlantGateway()
        self.garden = Garden(store or GardenStore())
        self.chat = ChatState(session=chat_session or ChatSession(greeting=CHAT_GREETING))
        self.identification = IdentifyState()
        self.diagnosis = DiagnoseState()
        self.products = ProductSearchState()

    async def start(self) -> None:
        """Open the garden store and load saved plants."""
        await self.garden.load()

    # =========================================================================
    # Identify
    # =========================================================================
    async def identify(self, image_bytes: bytes) -> Optional[PlantInfo]:
        state = self.identification
        token = state.slot.arm()
        state.result = None
        state.error = None
        state.image = image_bytes
        state.is_loading = True

        try:
            result = await self.gateway.identify(image_bytes)
        except GatewayError as e:
            logger.error(f"Error identifying plant: {e}", exc_info=True)
            if state.slot.is_current(token):
                state.error = IDENTIFY_ERROR_MESSAGE
            return None
        finally:
            if state.slot.is_current(token):
                state.is_loading = False

        if not state.slot.is_current(token):
            logger.debug(f"Discarding stale identification result ({result.name})")
            return None
        state.result = result
        return result

    # =========================================================================
    # Diagnose
    # =========================================================================
    async def diagnose(self, image_bytes: bytes, location_code: str = "") -> Optional[DiagnosisResult]:
        state = self.diagnosis
        try:
            location = validate_location_code(location_code)
        except ValidationError as e:
            logger.info(f"Diagnosis blocked: {e}")
            state.location_error = LOCATION_CODE_ERROR_MESSAGE
            return None
        state.location_error = None

        token = state.slot.arm()
        self._reset_products()
        state.result = None
        state.error = None
        state.image = image_bytes
        state.location_code = location
        state.is_loading = True

        try:
            result = await self.gateway.diagnose(image_bytes, location_hint=location or None)
        except GatewayError as e:
            logger.error(f"Error diagnosing plant: {e}", exc_info=True)
            if state.slot.is_current(token):
                state.error = DIAGNOSE_ERROR_MESSAGE
            return None
        finally:
            if state.slot.is_current(token):
                state.is_loading = False

        if not state.slot.is_current(token):
            logger.debug("Discarding stale diagnosis result")
            return None
        state.result = result
        return result

    # =========================================================================
    # Product search
    # =========================================================================
    @property
    def can_search_products(self) -> bool:
        result = self.diagnosis.result
        return result is not None and result.needs_treatment

    def _reset_products(self) -> None:
        # Product results belong to one diagnosis; invalidate any search in flight
        self.products.slot.arm()
        self.products.result = None
        self.products.is_searching = False

    async def search_products(self, diagnosis_text: Optional[str] = None) -> Optional[SearchResult]:
        if not self.can_search_products:
            logger.info("Product search not offered: no diagnosis needing treatment")
            return None

        query = diagnosis_text or self.diagnosis.result.diagnosis
        state = self.products
        token = state.slot.arm()
        state.is_searching = True

        try:
            result = await self.gateway.search_products(query)
        except GatewayError as e:
            # Supplementary feature: degrade to an empty result, no user-facing error
            logger.warning(f"Failed to fetch products: {e}", exc_info=True)
            result = SearchResult()
        finally:
            if state.slot.is_current(token):
                state.is_searching = False

        if not state.slot.is_current(token):
            logger.debug("Discarding stale product search result")
            return None
        state.result = result
        return result

    # =========================================================================
    # Garden
    # =========================================================================
    def is_saved(self, plant: PlantInfo) -> bool:
        return self.garden.contains(plant)

    @property
    def can_save(self) -> bool:
        state = self.identification
        return state.result is not None and state.image is not None and not self.is_saved(state.result)

    async def save(self, plant: PlantInfo, image_bytes: bytes) -> Optional[SavedPlant]:
        return await self.garden.save(plant, image_bytes)

    async def save_identified(self) -> Optional[SavedPlant]:
        state = self.identification
        if state.result is None or state.image is None:
            logger.info("Nothing to save: no identified plant")
            return None
        return await self.garden.save(state.result, state.image)

    async def remove(self, plant_id: str) -> bool:
        return await self.garden.remove(plant_id)

    # =========================================================================
    # Chat
    # =========================================================================
    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """Append the user's message, ask the model, append its reply (or the apology)."""
        if not text or not text.strip():
            return None

        session = self.chat.session
        history = session.to_history_payload()
        user_message = session.append_user(text)
        self.chat.pending += 1

        try:
            reply = await self.gateway.chat_turn(user_message.text, history)
        except GatewayError as e:
            logger.error(f"Error in chat: {e}", exc_info=True)
            return session.append_model(CHAT_ERROR_MESSAGE)
        finally:
            self.chat.pending -= 1

        return session.append_model(reply.text, reply.grounding_metadata)
