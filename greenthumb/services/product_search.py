import json
import logging
from typing import Any, List

from pydantic import ValidationError as ContractViolation

from greenthumb.exceptions import ProductSearchFailed
from greenthumb.models import ProductRecommendation, SearchResult
from greenthumb.prompts import PRODUCT_SEARCH_PROMPT
from greenthumb.services.gemini import (
    TRANSPORT_ERRORS,
    create_completion,
    extract_grounding,
    message_text,
)
from greenthumb.utils.text_processing import preview, strip_code_fences

logger = logging.getLogger(__name__)


def extract_products(raw_text: str) -> List[ProductRecommendation]:
    """Best-effort extraction of product JSON from free model text.

    Strips markdown fences, parses the remainder (or the outermost {...}
    block when prose surrounds it) and keeps every item that validates.
    Never raises: any failure yields an empty list so the caller can still
    show the raw text and citations.
    """
    cleaned = strip_code_fences(raw_text)
    if not cleaned:
        return []

    data = _load_json(cleaned)
    if data is None:
        logger.warning(f"Could not parse product JSON, falling back to text display: {preview(cleaned)}")
        return []

    items = data.get("products") if isinstance(data, dict) else data
    if not isinstance(items, list):
        logger.warning("Product JSON has no 'products' list")
        return []

    products = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        try:
            products.append(ProductRecommendation.model_validate(item))
        except ContractViolation as e:
            logger.warning(f"Skipping malformed product #{index}: {e.error_count()} error(s)")
    return products


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start_idx = text.find("{")
    end_idx = text.rfind("}")
    if start_idx == -1 or end_idx <= start_idx:
        return None
    try:
        return json.loads(text[start_idx:end_idx + 1])
    except json.JSONDecodeError:
        return None


async def search_products(diagnosis_text: str, client) -> SearchResult:
    """Look up treatment products for a diagnosis with live web grounding.

    Only transport failures raise (ProductSearchFailed); unparseable product
    JSON degrades to an empty product list.
    """
    logger.info(f"Searching products for: {preview(diagnosis_text, 80)}")

    if client is None:
        raise ProductSearchFailed("Product search service not configured")

    try:
        message = await create_completion(
            client,
            [{"role": "user", "content": PRODUCT_SEARCH_PROMPT.format(query=diagnosis_text)}],
            web_search=True,
        )
    except TRANSPORT_ERRORS as e:
        raise ProductSearchFailed(f"Product search request failed: {e}") from e

    raw_text = message_text(message)
    grounding_chunks = extract_grounding(message)
    products = extract_products(raw_text)

    logger.info(f"✓ Found {len(products)} products, {len(grounding_chunks)} sources")
    return SearchResult(products=products, raw_text=raw_text, grounding_chunks=grounding_chunks)
