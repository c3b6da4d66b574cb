from unittest.mock import MagicMock

import pytest

from chainlens.core.config import ProviderConfig, Settings, default_chains
from chainlens.deps import build_dispatcher

VALID_ADDRESS = "0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6"
SPENDER_ADDRESS = "0x1234567890abcdef1234567890ABCDEF12345678"
CONTRACT_ADDRESS = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
XRPL_ADDRESS = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"


def make_response(body=None, status=200, text=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.text = text if text is not None else str(body)
    return resp


@pytest.fixture
def provider():
    return ProviderConfig(chains=default_chains(), api_key="test-key")


@pytest.fixture
def session():
    s = MagicMock()
    s.post.return_value = make_response({"result": "0"})
    return s


@pytest.fixture
def dispatcher(provider, session):
    return build_dispatcher(provider, session=session)


@pytest.fixture
def settings():
    return Settings(OPENAI_API_KEY="sk-test", NODIT_API_KEY="test-key", NARRATOR_MODE="auto")


def token_items(n):
    """n provider token entries with distinct balances 1..n, in ascending order."""
    return [
        {"contract": {"address": f"0x{i:040x}", "symbol": f"TK{i}"}, "balance": str(i * 100)}
        for i in range(1, n + 1)
    ]
