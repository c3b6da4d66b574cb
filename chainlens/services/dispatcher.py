from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from chainlens.models.domain import (
    NO_DATA_REQUIRED, DispatchOutcome, ErrorKind, Intent, IntentKind, PipelineError,
)
from chainlens.services.fetcher import DEFAULT_LIMIT, DEFAULT_OFFSET, DataFetcher

log = logging.getLogger(__name__)

# required intent attributes per kind, in the order they are reported
REQUIRED: Dict[IntentKind, tuple] = {
    IntentKind.WALLET_BALANCE: ("chain", "address"),
    IntentKind.TOKEN_BALANCE: ("chain", "address"),
    IntentKind.TRANSACTION_HISTORY: ("chain", "address"),
    IntentKind.TOKEN_ALLOWANCE: ("chain", "contract_address", "owner_address", "spender_address"),
    IntentKind.TOKEN_BALANCE_CHANGES: ("chain", "address"),
    IntentKind.CUSTOM_QUERY: ("chain",),
    IntentKind.GENERAL_QUESTION: (),
}

# intent attribute -> wire name used in error messages
_WIRE = {
    "contract_address": "contractAddress",
    "owner_address": "ownerAddress",
    "spender_address": "spenderAddress",
}


def _as_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 0 else default


def _missing(fields) -> DispatchOutcome:
    return DispatchOutcome(error=PipelineError(
        kind=ErrorKind.MISSING_PARAMETER,
        message=f"Missing required parameter(s): {', '.join(fields)}",
        fields=tuple(fields),
    ))


class Dispatcher:
    """Routes a canonical Intent to exactly one data-fetch operation."""

    def __init__(self, fetcher: DataFetcher):
        self.fetcher = fetcher
        self._routes: Dict[IntentKind, Callable[[Intent, Mapping[str, Any]], DispatchOutcome]] = {
            IntentKind.WALLET_BALANCE: self._wallet_balance,
            IntentKind.TOKEN_BALANCE: self._token_balance,
            IntentKind.TRANSACTION_HISTORY: self._transaction_history,
            IntentKind.TOKEN_ALLOWANCE: self._token_allowance,
            IntentKind.TOKEN_BALANCE_CHANGES: self._token_balance_changes,
            IntentKind.CUSTOM_QUERY: self._custom_query,
            IntentKind.GENERAL_QUESTION: lambda intent, options: NO_DATA_REQUIRED,
        }

    def dispatch(self, intent: Intent, options: Optional[Mapping[str, Any]] = None) -> DispatchOutcome:
        route = self._routes.get(intent.kind)
        if route is None:
            supported = ", ".join(k.value for k in self._routes)
            return DispatchOutcome(error=PipelineError(
                kind=ErrorKind.UNSUPPORTED_INTENT_KIND,
                message=f"Unsupported intent type: {intent.kind}. Supported types: {supported}",
            ))
        missing = [_WIRE.get(f, f) for f in REQUIRED[intent.kind] if not getattr(intent, f)]
        if intent.kind == IntentKind.CUSTOM_QUERY:
            missing += [k for k in ("category", "method") if not intent.extra_params.get(k)]
        if missing:
            log.info("dispatch=missing kind=%s fields=%s", intent.kind.value, ",".join(missing))
            return _missing(missing)
        log.info("dispatch=route kind=%s chain=%s", intent.kind.value, intent.chain)
        return route(intent, options or {})

    # ---------- routes ----------
    def _wallet_balance(self, intent: Intent, options) -> DispatchOutcome:
        return DispatchOutcome.from_fetch(self.fetcher.fetch_balance(intent.chain, intent.address))

    def _token_balance(self, intent: Intent, options) -> DispatchOutcome:
        return DispatchOutcome.from_fetch(self.fetcher.fetch_tokens(intent.chain, intent.address))

    def _transaction_history(self, intent: Intent, options) -> DispatchOutcome:
        limit = _as_int(options.get("limit"), DEFAULT_LIMIT)
        offset = _as_int(options.get("offset"), DEFAULT_OFFSET)
        return DispatchOutcome.from_fetch(
            self.fetcher.fetch_transactions(intent.chain, intent.address, limit=limit, offset=offset))

    def _token_allowance(self, intent: Intent, options) -> DispatchOutcome:
        return DispatchOutcome.from_fetch(self.fetcher.fetch_allowance(
            intent.chain, intent.contract_address, intent.owner_address, intent.spender_address))

    def _token_balance_changes(self, intent: Intent, options) -> DispatchOutcome:
        return DispatchOutcome.from_fetch(
            self.fetcher.fetch_balance_changes(intent.chain, intent.address, options))

    def _custom_query(self, intent: Intent, options) -> DispatchOutcome:
        p = intent.extra_params
        params = p.get("params")
        if params is None:
            params = []
        elif not isinstance(params, (list, tuple)):
            params = [params]
        return DispatchOutcome.from_fetch(
            self.fetcher.fetch_query(intent.chain, str(p["category"]), str(p["method"]), params))
