"""
Data-fetch operations. Each one re-validates its inputs, makes exactly one
provider call and shapes the answer into a :class:`ResponseEnvelope`.

Failures come back as :class:`FetchOutcome` values carrying a
:class:`PipelineError`; upstream details go to the log, not to the caller.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from chainlens.core.config import ProviderConfig
from chainlens.models.domain import (
    EnvelopeKind, ErrorKind, FetchOutcome, PipelineError, ResponseEnvelope, TokenBalance,
)
from chainlens.services.nodit_client import NoditClient, ProviderError
from chainlens.services.validation import XRPL, check_chain_addresses

log = logging.getLogger(__name__)

PAGINATION_KEYS = ("page", "rpp", "cursor", "count", "total")
DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0

# envelope kind -> (category, method) on the web3 API
ENDPOINTS = {
    EnvelopeKind.BALANCE: ("native", "getNativeBalanceByAccount"),
    EnvelopeKind.TOKENS: ("token", "getTokenBalancesByAccount"),
    EnvelopeKind.TRANSACTIONS: ("blockchain", "getTransactionsByAccount"),
    EnvelopeKind.ALLOWANCE: ("token", "getTokenAllowance"),
    EnvelopeKind.BALANCE_CHANGES: ("token", "getTokenBalanceChangesByAccount"),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _result(body: Any) -> Any:
    if isinstance(body, dict) and "result" in body:
        return body["result"]
    return body


def _items(result: Any) -> List[Any]:
    if isinstance(result, list):
        return result
    if isinstance(result, dict) and isinstance(result.get("items"), list):
        return result["items"]
    return []


def _pagination(body: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(body, dict):
        return None
    found = {k: body[k] for k in PAGINATION_KEYS if k in body}
    return found or None


def _token_records(result: Any) -> Tuple[TokenBalance, ...]:
    records = []
    for item in _items(result):
        if not isinstance(item, dict):
            continue
        contract = item.get("contract") if isinstance(item.get("contract"), dict) else {}
        records.append(TokenBalance(
            symbol=item.get("symbol") or contract.get("symbol"),
            contract_address=item.get("contractAddress") or contract.get("address"),
            balance=str(item.get("balance", "0")),
        ))
    return tuple(records)


class DataFetcher:
    def __init__(self, client: NoditClient, config: ProviderConfig):
        self.client = client
        self.config = config

    # ---------- boundary checks ----------
    def _check(self, chain: str, addresses: Sequence[Tuple[str, Optional[str]]],
               family: Optional[str] = None) -> Optional[PipelineError]:
        chain_def = self.config.get(chain) if isinstance(chain, str) else None
        if chain_def is not None and family and chain_def.family != family:
            names = [c.name for c in self.config.chains if c.family == family]
            return PipelineError(
                kind=ErrorKind.UNSUPPORTED_CHAIN,
                message=f"Unsupported chain: {chain}. Supported chains: {', '.join(names)}",
                fields=("chain",), chain=chain,
            )
        return check_chain_addresses(chain, addresses, self.config.chains)

    def _call(self, kind: EnvelopeKind, chain: str, params: Mapping[str, Any]) -> Any:
        category, method = ENDPOINTS[kind]
        req = self.client.build_request(chain, category, method, dict(params))
        return self.client.web3(req)

    def _failed(self, kind: EnvelopeKind, chain: str, subject: Optional[str],
                err: ProviderError) -> FetchOutcome:
        log.warning("fetch=failed kind=%s chain=%s subject=%s status=%s err=%s body=%s",
                    kind.value, chain, subject, err.status, err, err.body)
        return FetchOutcome(error=PipelineError(
            kind=ErrorKind.DATA_FETCH_FAILED,
            message=f"Failed to fetch {kind.value.replace('_', ' ')} for {subject} on {chain}",
            chain=chain, subject_address=subject,
            upstream_status=err.status, cause=str(err),
        ))

    def _fetch(self, kind: EnvelopeKind, chain: str, subject: Optional[str],
               params: Mapping[str, Any], shape, extra_pagination=None) -> FetchOutcome:
        try:
            body = self._call(kind, chain, params)
        except ProviderError as e:
            return self._failed(kind, chain, subject, e)
        pagination = _pagination(body)
        if extra_pagination:
            pagination = {**extra_pagination, **(pagination or {})}
        log.info("fetch=ok kind=%s chain=%s subject=%s", kind.value, chain, subject)
        return FetchOutcome(envelope=ResponseEnvelope(
            chain=chain, subject_address=subject, kind=kind,
            payload=shape(_result(body)), pagination=pagination, retrieved_at=_now(),
        ))

    # ---------- operations ----------
    def fetch_balance(self, chain: str, address: str) -> FetchOutcome:
        err = self._check(chain, [("address", address)])
        if err:
            return FetchOutcome(error=err)

        def shape(result):
            if isinstance(result, dict) and "balance" in result:
                result = result["balance"]
            return str(result)
        return self._fetch(EnvelopeKind.BALANCE, chain, address,
                           {"accountAddress": address}, shape)

    def fetch_tokens(self, chain: str, address: str) -> FetchOutcome:
        err = self._check(chain, [("address", address)])
        if err:
            return FetchOutcome(error=err)
        return self._fetch(EnvelopeKind.TOKENS, chain, address,
                           {"accountAddress": address}, _token_records)

    def fetch_transactions(self, chain: str, address: str,
                           limit: int = DEFAULT_LIMIT, offset: int = DEFAULT_OFFSET) -> FetchOutcome:
        err = self._check(chain, [("address", address)])
        if err:
            return FetchOutcome(error=err)
        params = {"accountAddress": address, "limit": limit, "offset": offset}
        return self._fetch(EnvelopeKind.TRANSACTIONS, chain, address, params,
                           _items,
                           extra_pagination={"limit": limit, "offset": offset})

    def fetch_allowance(self, chain: str, contract_address: str,
                        owner_address: str, spender_address: str) -> FetchOutcome:
        err = self._check(chain, [
            ("contractAddress", contract_address),
            ("ownerAddress", owner_address),
            ("spenderAddress", spender_address),
        ])
        if err:
            return FetchOutcome(error=err)

        def shape(result):
            if isinstance(result, dict) and "allowance" in result:
                return str(result["allowance"])
            return result
        params = {
            "contractAddress": contract_address,
            "ownerAddress": owner_address,
            "spenderAddress": spender_address,
        }
        return self._fetch(EnvelopeKind.ALLOWANCE, chain, owner_address, params, shape)

    def fetch_balance_changes(self, chain: str, address: str,
                              options: Optional[Mapping[str, Any]] = None) -> FetchOutcome:
        err = self._check(chain, [("accountAddress", address)], family=XRPL)
        if err:
            return FetchOutcome(error=err)
        params = {**dict(options or {}), "accountAddress": address}
        return self._fetch(EnvelopeKind.BALANCE_CHANGES, chain, address, params, _items)

    def fetch_query(self, chain: str, category: str, method: str,
                    params: Optional[Sequence[Any]] = None) -> FetchOutcome:
        chain_def = self.config.get(chain) if isinstance(chain, str) else None
        if chain_def is None or not chain_def.node_url:
            names = [c.name for c in self.config.chains if c.node_url]
            return FetchOutcome(error=PipelineError(
                kind=ErrorKind.UNSUPPORTED_CHAIN,
                message=f"Unsupported chain: {chain}. Supported chains: {', '.join(names)}",
                fields=("chain",), chain=chain,
            ))
        req = self.client.build_request(chain, category, method, {"params": list(params or [])})
        try:
            body = self.client.node(req)
        except ProviderError as e:
            return self._failed(EnvelopeKind.QUERY, chain, None, e)
        log.info("fetch=ok kind=query chain=%s method=%s_%s", chain, category, method)
        return FetchOutcome(envelope=ResponseEnvelope(
            chain=chain, subject_address=None, kind=EnvelopeKind.QUERY,
            payload=_result(body), pagination=None, retrieved_at=_now(),
        ))
