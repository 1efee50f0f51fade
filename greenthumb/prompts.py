"""
Instruction text and response schemas sent to the remote model.

The schemas are hand-authored (no $ref/$defs) because Gemini's structured
output mode only accepts inline object schemas.
"""
from typing import Any, Dict

# ============================================================================#
# Identification
# ============================================================================#
IDENTIFY_PROMPT = (
    "Identify this plant. Provide the common name, scientific name, a brief description, "
    "detailed care instructions (water, light, soil, temperature), and a fun fact."
)

_STRING = {"type": "string"}

PLANT_INFO_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": _STRING,
        "scientificName": _STRING,
        "description": _STRING,
        "care": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "water": _STRING,
                "light": _STRING,
                "soil": _STRING,
                "temperature": _STRING,
            },
            "required": ["water", "light", "soil", "temperature"],
        },
        "funFact": _STRING,
    },
    "required": ["name", "scientificName", "description", "care", "funFact"],
}

# ============================================================================#
# Diagnosis
# ============================================================================#
DIAGNOSE_PROMPT = (
    "Analyze this plant for any signs of disease, pests, or nutrient deficiencies. "
    "Determine its health status."
)

LOCATION_HINT_TEMPLATE = (
    " The plant is located in zip code {location}. Take into account the local climate, "
    "season, and common regional pests or diseases for this area when forming your "
    "diagnosis and advice."
)

DIAGNOSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "healthStatus": {"type": "string", "enum": ["Healthy", "Sick", "Unknown"]},
        "diagnosis": _STRING,
        "symptoms": {"type": "array", "items": _STRING},
        "treatment": {"type": "array", "items": _STRING},
        "prevention": _STRING,
    },
    "required": ["healthStatus", "diagnosis", "symptoms", "treatment", "prevention"],
}

# ============================================================================#
# Product search (web-grounded, free text)
# ============================================================================#
PRODUCT_SEARCH_PROMPT = """Find 3 top-rated commercial products available online to treat "{query}" in plants.
Use web search to find real products with prices.

Return a strictly formatted JSON object with a single key "products" containing an array of items.
Each item must have:
- "name": Exact product name
- "price": Price with currency symbol (e.g. "$15.99") or empty string if not found.
- "description": 1 sentence on why it works
- "imageUrl": A direct URL to the product image if you can find one in the search snippets (otherwise leave empty string).
- "productUrl": A URL to purchase the product (use the search result link)

Do not use markdown formatting in the output. Just raw JSON."""

# ============================================================================#
# Chat
# ============================================================================#
CHAT_SYSTEM_INSTRUCTION = (
    "You are Greenthumb, an expert AI botanist. When users ask about specific plants, pests, "
    "or products, use web search to provide accurate, real-time information. If you find "
    "relevant images in the search results, include them in your response using Markdown "
    "image syntax: ![Description](Image URL). Keep answers helpful and concise."
)


def json_schema_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Build a strict `response_format` payload for the chat-completions API."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "strict": True,
            "schema": schema,
        },
    }
