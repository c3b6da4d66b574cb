from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

Primitive = Union[str, int, float, bool, None]


class IntentKind(str, Enum):
    WALLET_BALANCE = "wallet_balance"
    TOKEN_BALANCE = "token_balance"
    TRANSACTION_HISTORY = "transaction_history"
    TOKEN_ALLOWANCE = "token_allowance"
    TOKEN_BALANCE_CHANGES = "token_balance_changes"
    CUSTOM_QUERY = "custom_query"
    GENERAL_QUESTION = "general_question"


class ChartKind(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    AREA = "area"
    SCATTER = "scatter"


class EnvelopeKind(str, Enum):
    BALANCE = "balance"
    TOKENS = "tokens"
    TRANSACTIONS = "transactions"
    ALLOWANCE = "allowance"
    BALANCE_CHANGES = "balance_changes"
    QUERY = "query"


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "validation_error"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    UNSUPPORTED_INTENT_KIND = "unsupported_intent_kind"
    MISSING_PARAMETER = "missing_parameter"
    DATA_FETCH_FAILED = "data_fetch_failed"
    INTENT_EXTRACTION_FAILED = "intent_extraction_failed"


@dataclass(frozen=True)
class Intent:
    kind: IntentKind = IntentKind.GENERAL_QUESTION
    chain: Optional[str] = None
    address: Optional[str] = None
    contract_address: Optional[str] = None
    owner_address: Optional[str] = None
    spender_address: Optional[str] = None
    chart_kind: Optional[ChartKind] = None
    requires_external_data: bool = False
    extra_params: Mapping[str, Primitive] = field(default_factory=dict)

    def __post_init__(self):
        # read-only copy; GENERAL_QUESTION is shared
        object.__setattr__(self, "extra_params", MappingProxyType(dict(self.extra_params)))

    def describe(self) -> Dict[str, Any]:
        """Compact, JSON-friendly view used in prompts and logs."""
        out: Dict[str, Any] = {"kind": self.kind.value}
        for name in ("chain", "address", "contract_address", "owner_address", "spender_address"):
            v = getattr(self, name)
            if v:
                out[name] = v
        if self.chart_kind:
            out["chart_kind"] = self.chart_kind.value
        if self.extra_params:
            out["extra_params"] = dict(self.extra_params)
        return out


GENERAL_QUESTION = Intent()


@dataclass(frozen=True)
class RequestEnvelope:
    chain: str
    category: str
    method: str
    params: Mapping[str, Any]
    api_key: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class TokenBalance:
    symbol: Optional[str]
    contract_address: Optional[str]
    balance: str


@dataclass(frozen=True)
class ResponseEnvelope:
    chain: str
    subject_address: Optional[str]
    kind: EnvelopeKind
    payload: Any
    retrieved_at: datetime
    pagination: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = self.payload
        if self.kind == EnvelopeKind.TOKENS:
            payload = [
                {"symbol": t.symbol, "contractAddress": t.contract_address, "balance": t.balance}
                for t in payload
            ]
        return {
            "chain": self.chain,
            "subjectAddress": self.subject_address,
            "kind": self.kind.value,
            "payload": payload,
            "pagination": dict(self.pagination) if self.pagination is not None else None,
            "retrievedAt": self.retrieved_at.isoformat(),
        }


@dataclass(frozen=True)
class PipelineError:
    kind: ErrorKind
    message: str
    fields: Tuple[str, ...] = ()
    chain: Optional[str] = None
    subject_address: Optional[str] = None
    upstream_status: Optional[int] = None
    # kept for logging only, never serialized to the caller
    cause: Optional[str] = field(default=None, repr=False)

    @property
    def status_code(self) -> int:
        if self.kind == ErrorKind.DATA_FETCH_FAILED:
            if self.upstream_status and self.upstream_status >= 400:
                return self.upstream_status
            return 502
        return 400


@dataclass(frozen=True)
class FetchOutcome:
    envelope: Optional[ResponseEnvelope] = None
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DispatchOutcome:
    """Exactly one of: no_data (general questions), envelope, error."""
    envelope: Optional[ResponseEnvelope] = None
    error: Optional[PipelineError] = None
    no_data: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_fetch(cls, outcome: FetchOutcome) -> "DispatchOutcome":
        return cls(envelope=outcome.envelope, error=outcome.error)


NO_DATA_REQUIRED = DispatchOutcome(no_data=True)


def error_list(errors: List[PipelineError]) -> Optional[PipelineError]:
    """Fold several validation errors into one with every field listed."""
    if not errors:
        return None
    if len(errors) == 1:
        return errors[0]
    fields: List[str] = []
    for e in errors:
        fields.extend(f for f in e.fields if f not in fields)
    return PipelineError(
        kind=errors[0].kind,
        message="; ".join(e.message for e in errors),
        fields=tuple(fields),
    )
