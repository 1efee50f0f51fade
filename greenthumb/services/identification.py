import logging

from pydantic import ValidationError as ContractViolation

from greenthumb.exceptions import IdentificationFailed
from greenthumb.models import PlantInfo
from greenthumb.prompts import IDENTIFY_PROMPT, PLANT_INFO_SCHEMA, json_schema_format
from greenthumb.services.gemini import (
    TRANSPORT_ERRORS,
    create_completion,
    image_part,
    message_text,
    text_part,
)
from greenthumb.utils.text_processing import preview

logger = logging.getLogger(__name__)


async def identify_plant(image_bytes: bytes, client) -> PlantInfo:
    """Identify a plant from a photo.

    The model is held to the PlantInfo schema. Anything that does not
    validate is reported as IdentificationFailed; nothing is repaired or
    defaulted, because a photo may simply not show a plant.
    """
    logger.info("Starting plant identification with Gemini (via OpenRouter)")

    if client is None:
        raise IdentificationFailed("Identification service not configured")

    try:
        message = await create_completion(
            client,
            [
                {
                    "role": "user",
                    "content": [image_part(image_bytes), text_part(IDENTIFY_PROMPT)],
                }
            ],
            response_format=json_schema_format("plant_info", PLANT_INFO_SCHEMA),
        )
    except TRANSPORT_ERRORS as e:
        raise IdentificationFailed(f"Identification request failed: {e}") from e

    raw_text = message_text(message)
    if not raw_text.strip():
        raise IdentificationFailed("No response text received from Gemini.")
    logger.info(f"Gemini raw response: {preview(raw_text, 500)}")

    try:
        plant = PlantInfo.model_validate_json(raw_text)
    except ContractViolation as e:
        raise IdentificationFailed(f"Response does not match the PlantInfo contract: {e}") from e

    logger.info(f"✓ Identified plant: {plant.name} ({plant.scientific_name})")
    return plant
