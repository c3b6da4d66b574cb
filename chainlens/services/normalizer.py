"""
Turns the untrusted JSON object produced by the intent LLM into a canonical
:class:`Intent`.

LLM output is advisory: nothing here raises. Unknown kinds degrade to a general
question, an unsupported chain is replaced by the default chain, and invalid
addresses or chart kinds are dropped field by field.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from chainlens.core.config import ChainDef, default_chains
from chainlens.models.domain import (
    GENERAL_QUESTION, ChartKind, Intent, IntentKind, Primitive,
)
from chainlens.services.validation import (
    chain_family, is_supported_chain, is_valid_account_address, is_valid_for_any_family,
)

log = logging.getLogger(__name__)

# accepted spellings: enum value ("wallet_balance") or enum name ("WalletBalance")
_KINDS: Dict[str, IntentKind] = {}
for _k in IntentKind:
    _KINDS[_k.value] = _k
    _KINDS[_k.value.replace("_", "")] = _k

_CHART_KINDS = {c.value: c for c in ChartKind}

# canonical key -> keys tried in order (older prompt versions used the second forms)
_ALIASES = {
    "kind": ("kind", "type", "method"),
    "chartKind": ("chartKind", "chartType"),
    "extraParams": ("extraParams", "params"),
}

_ADDRESS_FIELDS = (
    ("address", "address"),
    ("contractAddress", "contract_address"),
    ("ownerAddress", "owner_address"),
    ("spenderAddress", "spender_address"),
)


def _pick(raw: Mapping[str, Any], key: str) -> Any:
    for k in _ALIASES.get(key, (key,)):
        if k in raw:
            return raw[k]
    return None


def _kind(value: Any) -> Optional[IntentKind]:
    if isinstance(value, IntentKind):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    return _KINDS.get(key) or _KINDS.get(key.replace("_", ""))


def _chart_kind(value: Any) -> Optional[ChartKind]:
    if isinstance(value, ChartKind):
        return value
    if isinstance(value, str):
        return _CHART_KINDS.get(value.strip().lower())
    return None


def _extra_params(value: Any) -> Dict[str, Primitive]:
    if not isinstance(value, Mapping):
        return {}
    out: Dict[str, Primitive] = {}
    for k, v in value.items():
        if isinstance(k, str) and (v is None or isinstance(v, (str, int, float, bool))):
            out[k] = v
        elif isinstance(k, str) and k == "params" and isinstance(v, (list, tuple)):
            # JSON-RPC positional params for custom queries
            out[k] = list(v)
    return out


def _resolve_chain(value: Any, chains: Sequence[ChainDef]) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, str) and is_supported_chain(value.strip().lower(), chains):
        return value.strip().lower()
    log.info("normalizer=chain_defaulted given=%r default=%s", value, chains[0].name)
    return chains[0].name


def normalize(raw: Any, chains: Optional[Sequence[ChainDef]] = None) -> Intent:
    """Coerce a raw intent object into a canonical Intent. Never raises."""
    chains = tuple(chains) if chains else default_chains()
    if not isinstance(raw, Mapping):
        return GENERAL_QUESTION

    kind = _kind(_pick(raw, "kind"))
    if kind is None or kind == IntentKind.GENERAL_QUESTION:
        return GENERAL_QUESTION

    chain = _resolve_chain(raw.get("chain"), chains)
    family = chain_family(chain, chains) if chain else None

    addresses: Dict[str, Optional[str]] = {}
    for src, dst in _ADDRESS_FIELDS:
        value = raw.get(src)
        if value is None or value == "":
            addresses[dst] = None
            continue
        valid = (is_valid_account_address(value, family) if family
                 else is_valid_for_any_family(value))
        if not valid:
            log.info("normalizer=address_dropped field=%s chain=%s", src, chain)
        addresses[dst] = value if valid else None

    return Intent(
        kind=kind,
        chain=chain,
        chart_kind=_chart_kind(_pick(raw, "chartKind")),
        requires_external_data=True,  # follows kind, whatever the model sent
        extra_params=_extra_params(_pick(raw, "extraParams")),
        **addresses,
    )
