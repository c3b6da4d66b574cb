from __future__ import annotations
from typing import Optional

from chainlens.core.config import Settings
from chainlens.models.domain import Intent, ResponseEnvelope
from chainlens.services import llm_client
from chainlens.services.llm_prompt import build_narrator_prompt


def narrate_with_llm(question: str, intent: Intent, envelope: Optional[ResponseEnvelope],
                     settings: Settings) -> Optional[str]:
    prompt = build_narrator_prompt(
        question,
        intent.describe(),
        envelope.to_dict() if envelope else None,
    )
    text = llm_client.complete(prompt, settings, max_tokens=settings.LLM_MAX_TOKENS)
    if not text or not text.strip():
        return None
    return text.strip()
