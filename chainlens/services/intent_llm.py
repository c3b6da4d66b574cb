from __future__ import annotations
import json, logging
from typing import Any, Optional, Sequence

from chainlens.core.config import ChainDef, Settings
from chainlens.models.domain import GENERAL_QUESTION, ErrorKind, Intent
from chainlens.services import llm_client
from chainlens.services.llm_prompt import build_intent_prompt
from chainlens.services.normalizer import normalize

log = logging.getLogger(__name__)


def parse_intent_json(raw: Optional[str]) -> Optional[Any]:
    """Strict parse: the reply must be a bare JSON object, fences are not stripped."""
    if not raw:
        return None
    text = raw.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def extract_intent(question: str, settings: Settings, chains: Sequence[ChainDef]) -> Intent:
    """LLM intent extraction. Any failure degrades to a general question."""
    prompt = build_intent_prompt(question, [c.name for c in chains])
    raw = llm_client.complete(prompt, settings, max_tokens=settings.INTENT_MAX_TOKENS, temperature=0.0)
    if not raw:
        log.info("intent=general_question reason=%s", ErrorKind.INTENT_EXTRACTION_FAILED.value)
        return GENERAL_QUESTION

    payload = parse_intent_json(raw)
    if payload is None:
        log.warning("intent=general_question reason=%s detail=json_invalid raw=%s",
                    ErrorKind.INTENT_EXTRACTION_FAILED.value, str(raw)[:300])
        return GENERAL_QUESTION

    intent = normalize(payload, chains)
    log.info("intent=%s chain=%s chart=%s", intent.kind.value, intent.chain,
             intent.chart_kind.value if intent.chart_kind else None)
    return intent
