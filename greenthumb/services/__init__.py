"""
Services for Greenthumb: AI gateway, garden persistence, chat session and orchestration
"""
from .gateway import PlantGateway
from .garden_store import GardenStore
from .garden import Garden
from .chat_session import ChatSession
from .orchestrator import PlantAssistant, RequestSlot

__all__ = [
    'PlantGateway',
    'GardenStore',
    'Garden',
    'ChatSession',
    'PlantAssistant',
    'RequestSlot'
]
