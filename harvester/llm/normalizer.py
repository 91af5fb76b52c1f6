"""Normalization client: turns raw item markup into a structured product record.

The extraction service is a chat model reached through LangChain.  Requests
are deterministic (``temperature=0``) and constrained to a single JSON
object:

``openai`` (default)
    Any OpenAI-compatible chat completions endpoint (DeepSeek by default).
    Configure via ``OPENAI_BASE_URL``, ``OPENAI_API_KEY`` and
    ``OPENAI_CHAT_MODEL``.

``ollama``
    A local Ollama server, using its JSON output mode.
    Configure via ``OLLAMA_BASE_URL`` and ``OLLAMA_CHAT_MODEL``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from harvester.config import settings
from harvester.scraper.models import RawItemContent, StructuredProduct

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a data extraction agent that specialises in reading product pages.
From the HTML content provided, extract the following information and answer
with a single JSON object in exactly the format given below.

Rules:
1. Use a minus sign "-" for every value that cannot be found (never null).
2. Extract every piece of information that is available in the HTML.
3. For prices, extract every currency format that is shown.
4. For sizes, list every available option together with its stock status.
5. For specifications, extract every attribute that is available.

Output format:
{
  "product_name": "string",
  "price": {
    "currency": "string",
    "value": "string",
    "original_price": "string",
    "discount": "string"
  },
  "condition": "string",
  "condition_detail": "string",
  "seller": {
    "name": "string",
    "rating": "string",
    "review_count": "string",
    "location": "string"
  },
  "shipping": {
    "cost": "string",
    "method": "string",
    "estimate": "string",
    "duties": "string"
  },
  "quantity": {
    "available": "string",
    "sold": "string"
  },
  "size": {
    "label": "string",
    "options": ["array of options"]
  },
  "specifications": {
    "Condition": "string",
    "Closure": "string",
    "Occasion": "string",
    "Year Manufactured": "string",
    "Vintage": "string",
    "Department": "string",
    "Release Year": "string",
    "Style": "string",
    "Outsole Material": "string",
    "Features": "string",
    "Season": "string",
    "Shoe Shaft Style": "string",
    "Style Code": "string",
    "Pattern": "string",
    "Signed": "string",
    "Lining Material": "string",
    "Color": "string",
    "Brand": "string",
    "Type": "string",
    "Customized": "string",
    "Model": "string",
    "Theme": "string",
    "Shoe Width": "string",
    "Insole Material": "string",
    "Country/Region of Manufacture": "string",
    "Upper Material": "string",
    "Performance/Activity": "string",
    "Product Line": "string"
  },
  "item_number": "string",
  "description_url": "string"
}
"""


# ---------------------------------------------------------------------------
# LLM helper
# ---------------------------------------------------------------------------

def _get_llm() -> Any:
    """Return a JSON-mode LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            model=settings.openai_chat_model,
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key or None,
            temperature=0,
        )
        return llm.bind(response_format={"type": "json_object"})

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        base_url=settings.ollama_base_url,
        temperature=0,
        format="json",
    )


def build_prompt(content: RawItemContent) -> str:
    """Combine the item URL and both fragments into the user message."""
    return (
        f"PRODUCT URL: {content.url}\n\n"
        f"MAIN CONTENT:\n{content.main_fragment}\n\n"
        f"TABS CONTENT:\n{content.tabs_fragment}\n"
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def normalize(content: RawItemContent) -> Optional[StructuredProduct]:
    """Send *content* to the extraction service and parse the answer.

    Returns ``None`` when the request fails or the answer is not a JSON
    object; the caller drops the item for this run.
    """
    messages = [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=build_prompt(content)),
    ]
    try:
        response = await _get_llm().ainvoke(messages)
    except Exception as exc:
        logger.error("Extraction service request failed for %s: %s", content.url, exc)
        return None

    raw = response.content if hasattr(response, "content") else str(response)
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.error("Extraction service returned malformed JSON for %s: %s", content.url, exc)
        return None

    if not isinstance(payload, dict):
        logger.error(
            "Extraction service returned %s instead of an object for %s",
            type(payload).__name__, content.url,
        )
        return None

    return StructuredProduct.from_payload(content.url, payload)
