import logging
from typing import Optional

import httpx
from openai import AsyncOpenAI

from greenthumb.config import (
    API_CONNECT_TIMEOUT,
    API_TIMEOUT,
    APP_REFERER,
    APP_TITLE,
    OPENROUTER_API_KEY,
    OPENROUTER_BASE_URL,
)

logger = logging.getLogger(__name__)

# Attribution headers OpenRouter expects on every request
OPENROUTER_HEADERS = {
    "HTTP-Referer": APP_REFERER,
    "X-Title": APP_TITLE,
}


def create_gemini_client(api_key: Optional[str] = None) -> Optional[AsyncOpenAI]:
    """Create the OpenRouter client used for every Gemini call.

    Returns None when no API key is configured; gateway calls then fail
    with their typed error instead of reaching the network.
    """
    api_key = api_key or OPENROUTER_API_KEY
    if not api_key:
        logger.warning("OPENROUTER_API_KEY not configured - AI features disabled")
        return None

    # httpx client with explicit timeouts
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=API_CONNECT_TIMEOUT,
            read=API_TIMEOUT,
            write=API_TIMEOUT,
            pool=API_TIMEOUT,
        )
    )
    client = AsyncOpenAI(
        base_url=OPENROUTER_BASE_URL,
        api_key=api_key,
        http_client=http_client,
        max_retries=0,  # the user re-triggers failed actions
    )
    logger.info(f"OpenRouter (Gemini) initialized with {API_TIMEOUT:.0f}s timeout")
    return client
