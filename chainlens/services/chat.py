from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from chainlens.core.config import ProviderConfig, Settings
from chainlens.models.domain import Intent, PipelineError, ResponseEnvelope
from chainlens.models.dto import ChatData
from chainlens.services.chart_builder import select_chart
from chainlens.services.dispatcher import Dispatcher
from chainlens.services.intent_llm import extract_intent
from chainlens.services.narrator import narrate as deterministic_narrator
from chainlens.services.narrator_llm import narrate_with_llm
from chainlens.services.validation import chain_family

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatResult:
    data: Optional[ChatData] = None
    error: Optional[PipelineError] = None
    narrator: str = "deterministic"


class ChatPipeline:
    """text -> intent -> dispatch -> narrate -> chart, one pass per message."""

    def __init__(self, settings: Settings, provider: ProviderConfig, dispatcher: Dispatcher):
        self.settings = settings
        self.provider = provider
        self.dispatcher = dispatcher

    def _narrate(self, question: str, intent: Intent,
                 envelope: Optional[ResponseEnvelope]) -> Tuple[str, str]:
        mode = (self.settings.NARRATOR_MODE or "auto").lower()
        family = chain_family(envelope.chain, self.provider.chains) if envelope else None

        if mode in ("llm", "auto"):
            text = narrate_with_llm(question, intent, envelope, self.settings)
            if text:
                return text, "llm"
            if mode == "llm":
                # forced LLM but it failed, still answer
                return deterministic_narrator(intent, envelope, family or "evm"), "fallback"
        return deterministic_narrator(intent, envelope, family or "evm"), "deterministic"

    def process(self, message: str, session_id: Optional[str] = None) -> ChatResult:
        intent = extract_intent(message, self.settings, self.provider.chains)

        outcome = self.dispatcher.dispatch(intent)
        if not outcome.ok:
            log.info("chat=error kind=%s session=%s", outcome.error.kind.value, session_id)
            return ChatResult(error=outcome.error)

        envelope = outcome.envelope
        text, source = self._narrate(message, intent, envelope)
        chart = select_chart(envelope, intent.chart_kind) if envelope is not None else None

        data = ChatData(
            message=text,
            chart_data=chart,
            intent=intent.kind.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
            session_id=session_id,
        )
        log.info("chat=ok intent=%s narrator=%s chart=%s session=%s",
                 intent.kind.value, source, bool(chart), session_id)
        return ChatResult(data=data, narrator=source)
