from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Dict, Iterable, List

from openai import OpenAI
from pydantic import BaseModel, TypeAdapter

from . import config
from .catalog import Extra, Product, all_possible_extras, default_suggestions
from .event_log import log_event

logger = logging.getLogger(__name__)

CHAT_FALLBACK = "Lo siento, estoy teniendo problemas para conectarme. Por favor, intenta de nuevo más tarde."
MAX_SUGGESTIONS = 3

CHAT_SYSTEM = (
    "You are Maya, a helpful AI assistant for Trama Hogar, an online store selling "
    "artisanal textile products for the home. "
    "You should answer questions about product details, customization options, and help "
    "customers find what they are looking for. Be informative and friendly. "
    'Reply with a JSON object of the form {"response": "<your answer>"}.'
)

SUGGEST_SYSTEM = (
    "You are an AI assistant specializing in suggesting complementary items for products "
    "on the Trama Hogar website. Given the name of a product, suggest three complementary "
    "items that would enhance the user's experience with the product. "
    'Reply with a JSON object of the form {"items": [{"name": "...", "description": "..."}]}.'
)


class ChatAssistanceOutput(BaseModel):
    response: str


class SuggestedItem(BaseModel):
    name: str
    description: str


_SUGGESTIONS = TypeAdapter(List[SuggestedItem])


class AssistUnavailable(RuntimeError):
    pass


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(timeout=config.LLM_TIMEOUT_SECS)


def _complete_json(system: str, user: str, temperature: float = 0.7) -> dict:
    if not config.LLM_ENABLED:
        raise AssistUnavailable("LLM is disabled")
    resp = _client().chat.completions.create(
        model=config.LLM_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        temperature=temperature,
        max_tokens=512,
        response_format={"type": "json_object"},
    )
    txt = (resp.choices[0].message.content or "").strip()
    # Some models still wrap JSON in a markdown fence
    if "```json" in txt:
        txt = txt.split("```json")[1].split("```")[0].strip()
    elif txt.startswith("```"):
        txt = txt.split("```")[1].split("```")[0].strip()
    data = json.loads(txt)
    if not isinstance(data, dict):
        raise ValueError("Model did not return a JSON object")
    return data


def ai_chat_assistance(query: str) -> ChatAssistanceOutput:
    data = _complete_json(CHAT_SYSTEM, f"Customer Query: {query}\n\nResponse:")
    return ChatAssistanceOutput.model_validate(data)


def suggest_complementary_items(product_name: str) -> List[SuggestedItem]:
    data = _complete_json(SUGGEST_SYSTEM, f"Product Name: {product_name}\n\nComplementary Items:", temperature=0.4)
    return _SUGGESTIONS.validate_python(data.get("items", []))


def format_history(messages: Iterable[Dict[str, str]]) -> str:
    """Render widget messages as `User: ...` / `Maya: ...` lines."""
    lines = []
    for m in messages:
        who = "User" if m.get("type") == "sent" else "Maya"
        lines.append(f"{who}: {m.get('text', '')}")
    return "\n".join(lines)


def chat_reply(query: str, full_history: str = "") -> str:
    payload = {"query": f"Full conversation history for context:\n{full_history}\n\nLatest user query: {query}"}
    log_event("getAiChatResponse", "info", "Getting AI chat response.", payload)
    try:
        out = ai_chat_assistance(payload["query"])
    except Exception as e:
        logger.warning(f"AI chat response failed: {e}")
        log_event("getAiChatResponse", "error", "Error getting AI chat response.", {"error": str(e)})
        return CHAT_FALLBACK
    log_event("getAiChatResponse", "success", "Received AI chat response.", out)
    return out.response


def match_suggestions(product: Product, suggestions: List[SuggestedItem]) -> List[Extra]:
    """Map model suggestions onto sellable extras by case-insensitive substring."""
    candidates = all_possible_extras(product.id)
    matched: Dict[str, Extra] = {}
    for s in suggestions:
        needle = s.name.lower()
        found = next((e for e in candidates if needle in e.name.lower()), None)
        if found is None:
            continue
        # Later duplicates overwrite the description but keep first position
        matched[found.id] = found.model_copy(update={"description": s.description, "suggested": True})
    return list(matched.values())[:MAX_SUGGESTIONS]


def get_suggestions(product: Product) -> List[Extra]:
    log_event("getAiSuggestions", "info", "Fetching AI suggestions for product.", {"productName": product.name})
    try:
        suggestions = suggest_complementary_items(product.name)
    except Exception as e:
        logger.warning(f"AI suggestions failed: {e}")
        log_event("getAiSuggestions", "error", "Error getting AI suggestions.", {"error": str(e)})
        return default_suggestions()
    log_event("getAiSuggestions", "success", "Received AI suggestions.", suggestions)
    return match_suggestions(product, suggestions)
