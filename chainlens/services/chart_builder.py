import math
from typing import List, Optional, Sequence

import pandas as pd

from chainlens.models.domain import ChartKind, EnvelopeKind, ResponseEnvelope, TokenBalance
from chainlens.models.dto import ChartConfiguration, ChartSeries

TOP_N = 10
LABEL_PREFIX_LEN = 8


def _numeric(values: Sequence) -> pd.Series:
    # unparseable or non-finite balances count as zero
    s = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce")
    return s.astype(float).replace([math.inf, -math.inf], 0.0).fillna(0.0)


def _label(token: TokenBalance) -> str:
    if token.symbol:
        return str(token.symbol)
    if token.contract_address:
        return str(token.contract_address)[:LABEL_PREFIX_LEN]
    return "Unknown"


def _token_frame(tokens: Sequence[TokenBalance]) -> pd.DataFrame:
    return pd.DataFrame({
        "label": [_label(t) for t in tokens],
        "balance": _numeric([t.balance for t in tokens]),
    })


def no_data() -> ChartConfiguration:
    return ChartConfiguration(
        kind=None, title="No Data Available", labels=["No Data"],
        series=[ChartSeries(name="No Data", values=[1.0])], placeholder=True,
    )


def _balance_chart(env: ResponseEnvelope, kind: ChartKind) -> ChartConfiguration:
    value = float(_numeric([env.payload]).iloc[0])
    return ChartConfiguration(
        kind=kind, title=f"Native Balance on {env.chain}", labels=["Current Balance"],
        series=[ChartSeries(name=f"{env.chain} Balance", values=[value])],
    )


def _bar_chart(env: ResponseEnvelope) -> ChartConfiguration:
    df = _token_frame(env.payload)
    # mergesort is stable: equal balances keep provider order
    top = df.sort_values("balance", ascending=False, kind="mergesort").head(TOP_N)
    return ChartConfiguration(
        kind=ChartKind.BAR, title="Top Token Balances", labels=top["label"].tolist(),
        series=[ChartSeries(name="Token Balances", values=top["balance"].tolist())],
    )


def _pie_chart(env: ResponseEnvelope) -> ChartConfiguration:
    df = _token_frame(env.payload)
    held = df[df["balance"] > 0]
    return ChartConfiguration(
        kind=ChartKind.PIE, title="Token Distribution", labels=held["label"].tolist(),
        series=[ChartSeries(name="Token Balances", values=held["balance"].tolist())],
    )


def _scatter_chart(env: ResponseEnvelope) -> ChartConfiguration:
    df = _token_frame(env.payload)
    held = df[df["balance"] > 0].reset_index(drop=True)
    xs: List[float] = [float(i) for i in held.index]
    return ChartConfiguration(
        kind=ChartKind.SCATTER, title="Token Balance Distribution", labels=held["label"].tolist(),
        series=[ChartSeries(name="Token Balances", values=held["balance"].tolist(), x=xs)],
    )


def select_chart(envelope: Optional[ResponseEnvelope],
                 chart_kind: Optional[ChartKind] = None) -> ChartConfiguration:
    """Map a response envelope and requested chart kind to a chart configuration.

    Pure: the same inputs always give the same configuration. Combinations with
    no sensible rendering (e.g. a pie of a single balance) give the placeholder.
    """
    if envelope is None:
        return no_data()
    is_tokens = envelope.kind == EnvelopeKind.TOKENS
    is_balance = envelope.kind == EnvelopeKind.BALANCE

    if chart_kind is None:
        if is_tokens and len(envelope.payload) > 0:
            chart_kind = ChartKind.PIE
        elif is_balance:
            chart_kind = ChartKind.LINE
        else:
            return no_data()

    if chart_kind in (ChartKind.LINE, ChartKind.AREA) and is_balance:
        return _balance_chart(envelope, chart_kind)
    if chart_kind == ChartKind.BAR and is_tokens:
        return _bar_chart(envelope)
    if chart_kind == ChartKind.PIE and is_tokens:
        return _pie_chart(envelope)
    if chart_kind == ChartKind.SCATTER and is_tokens:
        return _scatter_chart(envelope)
    return no_data()
