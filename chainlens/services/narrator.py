from decimal import Decimal, InvalidOperation
from typing import Optional

from chainlens.models.domain import EnvelopeKind, Intent, ResponseEnvelope
from chainlens.services.validation import XRPL

GENERAL_REPLY = (
    "I can look up wallet balances, token holdings, transaction history, token allowances "
    "and XRPL balance changes on supported chains, and chart the results. "
    "Ask me about a wallet address to get started."
)

# smallest-unit decimals per chain family
_DECIMALS = {"evm": 18, XRPL: 6}
_UNITS = {"evm": "wei", XRPL: "drops"}


def _fmt_native(raw, family: str) -> str:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return str(raw)
    whole = value / (Decimal(10) ** _DECIMALS.get(family, 18))
    return f"{whole:,.6f} ({value:,.0f} {_UNITS.get(family, 'wei')})"


def _short(addr: Optional[str]) -> str:
    if not addr:
        return "the account"
    return f"{addr[:6]}…{addr[-4:]}" if len(addr) > 12 else addr


def narrate(intent: Intent, envelope: Optional[ResponseEnvelope], family: str = "evm") -> str:
    """Template reply used when the LLM narrator is off or unavailable."""
    if envelope is None:
        return GENERAL_REPLY

    who, chain = _short(envelope.subject_address), envelope.chain
    payload = envelope.payload

    if envelope.kind == EnvelopeKind.BALANCE:
        return f"The native balance of **{who}** on {chain} is **{_fmt_native(payload, family)}**."

    if envelope.kind == EnvelopeKind.TOKENS:
        if not payload:
            return f"**{who}** holds no tokens on {chain}."
        held = [t for t in payload if t.symbol][:3]
        top = ", ".join(t.symbol for t in held)
        tail = f" Including: {top}." if top else ""
        return f"**{who}** holds **{len(payload)}** tokens on {chain}.{tail}"

    if envelope.kind == EnvelopeKind.TRANSACTIONS:
        n = len(payload) if isinstance(payload, list) else 0
        return f"Found **{n}** transactions for **{who}** on {chain}."

    if envelope.kind == EnvelopeKind.ALLOWANCE:
        spender = _short(intent.spender_address)
        return f"The allowance granted by **{who}** to **{spender}** on {chain} is **{payload}**."

    if envelope.kind == EnvelopeKind.BALANCE_CHANGES:
        n = len(payload) if isinstance(payload, list) else 0
        return f"Found **{n}** token balance changes for **{who}** on {chain}."

    return f"Query result on {chain}: {payload}"
