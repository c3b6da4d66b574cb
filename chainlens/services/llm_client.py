from __future__ import annotations
import logging
from typing import Optional

from chainlens.core.config import Settings

log = logging.getLogger(__name__)


def complete(prompt: str, settings: Settings, max_tokens: int, temperature: float = 0.2) -> Optional[str]:
    """Single chat completion. Returns None when no key is set or the call fails."""
    key = settings.OPENAI_API_KEY
    if not key:
        log.info("llm=skipped reason=no_api_key")
        return None
    try:
        import openai  # openai>=1.0
        client = openai.OpenAI(api_key=key)
        resp = client.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.LLM_TIMEOUT,
        )
        return resp.choices[0].message.content
    except Exception as e:
        log.warning("llm=failed model=%s err=%s", settings.LLM_MODEL, e)
        return None
