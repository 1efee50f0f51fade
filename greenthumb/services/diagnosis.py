import logging
from typing import Optional

from pydantic import ValidationError as ContractViolation

from greenthumb.exceptions import DiagnosisFailed
from greenthumb.models import DiagnosisResult
from greenthumb.prompts import (
    DIAGNOSE_PROMPT,
    DIAGNOSIS_SCHEMA,
    LOCATION_HINT_TEMPLATE,
    json_schema_format,
)
from greenthumb.services.gemini import (
    TRANSPORT_ERRORS,
    create_completion,
    image_part,
    message_text,
    text_part,
)
from greenthumb.utils.text_processing import preview

logger = logging.getLogger(__name__)


def build_diagnosis_prompt(location_hint: Optional[str] = None) -> str:
    """Diagnosis instruction, with the regional hint appended when one is given.

    The hint is expected to be validated already.
    """
    prompt = DIAGNOSE_PROMPT
    if location_hint:
        prompt += LOCATION_HINT_TEMPLATE.format(location=location_hint)
    return prompt


async def diagnose_plant(
    image_bytes: bytes,
    client,
    location_hint: Optional[str] = None,
) -> DiagnosisResult:
    """Assess plant health from a photo.

    `healthStatus` must be one of Healthy / Sick / Unknown; any other value
    is a contract violation and raises DiagnosisFailed.
    """
    logger.info(f"Starting plant diagnosis with Gemini (location hint: {location_hint or 'none'})")

    if client is None:
        raise DiagnosisFailed("Diagnosis service not configured")

    try:
        message = await create_completion(
            client,
            [
                {
                    "role": "user",
                    "content": [
                        image_part(image_bytes),
                        text_part(build_diagnosis_prompt(location_hint)),
                    ],
                }
            ],
            response_format=json_schema_format("diagnosis_result", DIAGNOSIS_SCHEMA),
        )
    except TRANSPORT_ERRORS as e:
        raise DiagnosisFailed(f"Diagnosis request failed: {e}") from e

    raw_text = message_text(message)
    if not raw_text.strip():
        raise DiagnosisFailed("No response text received from Gemini.")
    logger.info(f"Gemini raw response: {preview(raw_text, 500)}")

    try:
        result = DiagnosisResult.model_validate_json(raw_text)
    except ContractViolation as e:
        raise DiagnosisFailed(f"Response does not match the DiagnosisResult contract: {e}") from e

    logger.info(f"✓ Diagnosis: {result.health_status.value} - {preview(result.diagnosis, 80)}")
    return result
