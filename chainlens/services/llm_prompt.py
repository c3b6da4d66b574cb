from __future__ import annotations
import json
from typing import Sequence

from jinja2 import Template

from chainlens.models.domain import ChartKind, IntentKind

KIND_HELP = {
    IntentKind.WALLET_BALANCE: "native coin balance of a wallet",
    IntentKind.TOKEN_BALANCE: "all token balances held by a wallet",
    IntentKind.TRANSACTION_HISTORY: "transaction history of a wallet",
    IntentKind.TOKEN_ALLOWANCE: "how much a spender may move from an owner for a token contract",
    IntentKind.TOKEN_BALANCE_CHANGES: "token balance changes of an XRPL account (xrpl only)",
    IntentKind.CUSTOM_QUERY: "a raw node call; put category, method and params in extraParams",
    IntentKind.GENERAL_QUESTION: "conceptual questions that need no on-chain data",
}

FEWSHOTS = [
    {
        "q": "Show me the ETH balance of 0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6 on Ethereum",
        "intent": {"kind": "wallet_balance", "chain": "ethereum",
                   "address": "0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6",
                   "chartKind": None, "extraParams": {}, "requiresExternalData": True},
    },
    {
        "q": "Plot a pie chart of tokens held by 0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6",
        "intent": {"kind": "token_balance", "chain": "ethereum",
                   "address": "0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6",
                   "chartKind": "pie", "extraParams": {}, "requiresExternalData": True},
    },
    {
        "q": "What is the latest block number on polygon?",
        "intent": {"kind": "custom_query", "chain": "polygon", "address": None, "chartKind": None,
                   "extraParams": {"category": "eth", "method": "blockNumber", "params": []},
                   "requiresExternalData": True},
    },
    {
        "q": "What is a blockchain?",
        "intent": {"kind": "general_question", "chain": None, "address": None, "chartKind": None,
                   "extraParams": {}, "requiresExternalData": False},
    },
]

INTENT_TMPL = Template("""
You are an intent extraction system for a blockchain data assistant.
Map the user's message to ONE JSON object. Output only the raw JSON object, starting with { and ending with }.
No markdown, no code fences, no comments.

Keys:
- kind: one of
{%- for k, help in kinds %}
  - "{{ k }}": {{ help }}
{%- endfor %}
- chain: one of [{{ chains | join(", ") }}], or null for general_question.
  If an address is given but no chain, use "{{ chains[0] }}".
- address: wallet / account address, or null.
- contractAddress, ownerAddress, spenderAddress: only for token_allowance, else omit.
- chartKind: one of [{{ chart_kinds | join(", ") }}] when a chart/plot/graph is asked for, else null.
- extraParams: object; empty unless kind is custom_query.
- requiresExternalData: true unless kind is general_question.

If the message is unclear or needs no on-chain data, answer with kind "general_question".
If an address looks invalid for the chain, set it to null.

Examples:
{%- for ex in fewshots %}
Message: {{ ex.q }}
{{ ex.intent | tojson }}
{%- endfor %}

Message: {{ question }}
""")


def build_intent_prompt(question: str, chains: Sequence[str]) -> str:
    return INTENT_TMPL.render(
        kinds=[(k.value, KIND_HELP[k]) for k in IntentKind],
        chains=list(chains),
        chart_kinds=[c.value for c in ChartKind],
        fewshots=FEWSHOTS,
        question=question,
    ).strip()


NARRATOR_TMPL = """You are a friendly assistant that explains blockchain data in plain language.
Answer the user's message in 2-5 short sentences. Be conversational and concise.
If DATA is present, explain it clearly; balances are in the chain's smallest unit (wei for EVM chains, drops for xrpl).
If DATA is absent, answer from general knowledge. Do not invent on-chain numbers.

INTENT:
{intent_block}

DATA:
{data_block}

User message: {question}
"""


def build_narrator_prompt(question: str, intent_block: dict, data_block: dict | None,
                          max_chars: int = 4000) -> str:
    data = json.dumps(data_block, default=str)[:max_chars] if data_block else "none"
    return NARRATOR_TMPL.format(
        intent_block=json.dumps(intent_block),
        data_block=data,
        question=question,
    )
