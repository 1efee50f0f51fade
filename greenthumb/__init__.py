"""
Greenthumb - AI plant identification, diagnosis, product search and chat,
with a locally persisted garden of saved plants.

Components:
1. GardenStore    - sqlite-backed store of saved plants
2. PlantGateway   - Gemini (via OpenRouter) identify / diagnose / products / chat
3. ChatSession    - ordered conversation history
4. PlantAssistant - orchestration, loading/error state, last-request-wins
"""
__version__ = "1.0.0"
