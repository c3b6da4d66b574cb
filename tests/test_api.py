import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from chainlens.deps import get_chat_pipeline, get_dispatcher, get_provider_config, get_settings
from chainlens.main import app
from chainlens.services.chat import ChatPipeline
from conftest import CONTRACT_ADDRESS, SPENDER_ADDRESS, VALID_ADDRESS, XRPL_ADDRESS, make_response


@pytest.fixture
def client(settings, provider, dispatcher):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_provider_config] = lambda: provider
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_chat_pipeline] = lambda: ChatPipeline(settings, provider, dispatcher)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "xrpl" in data["provider"]["chains"]


def test_chains(client):
    resp = client.get("/api/mcp/chains")
    assert resp.json()["data"][0] == "ethereum"


def test_balance_route(client, session):
    session.post.return_value = make_response({"result": "1000000000000000000"})
    resp = client.get(f"/api/mcp/balance/ethereum/{VALID_ADDRESS}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["kind"] == "balance"
    assert body["data"]["payload"] == "1000000000000000000"
    assert body["data"]["subjectAddress"] == VALID_ADDRESS
    assert body["data"]["retrievedAt"]


def test_balance_route_rejects_bad_address(client, session):
    resp = client.get("/api/mcp/balance/ethereum/0x123")
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "validation_error"
    assert err["fields"] == ["address"]
    assert "not a valid evm address" in err["message"]
    session.post.assert_not_called()


@pytest.mark.parametrize("path", [
    f"/api/mcp/balance/solana/{VALID_ADDRESS}",
    f"/api/mcp/tokens/solana/{VALID_ADDRESS}",
    "/api/mcp/transactions/solana/0x123",
])
def test_address_routes_reject_unknown_chain(client, session, path):
    resp = client.get(path)
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "unsupported_chain"
    assert err["fields"] == ["chain"]
    assert "ethereum" in err["message"]
    session.post.assert_not_called()


def test_tokens_route(client, session):
    session.post.return_value = make_response({"items": [{"symbol": "USDT", "contractAddress": CONTRACT_ADDRESS,
                                                          "balance": "10"}]})
    resp = client.get(f"/api/mcp/tokens/polygon/{VALID_ADDRESS}")
    assert resp.json()["data"]["payload"] == [
        {"symbol": "USDT", "contractAddress": CONTRACT_ADDRESS, "balance": "10"}
    ]


def test_transactions_route_pagination(client, session):
    session.post.return_value = make_response({"items": [], "total": 0})
    resp = client.get(f"/api/mcp/transactions/ethereum/{VALID_ADDRESS}?limit=5&offset=10")
    assert resp.status_code == 200
    assert resp.json()["data"]["pagination"] == {"limit": 5, "offset": 10, "total": 0}


def test_upstream_failure_is_not_echoed(client, session):
    session.post.return_value = make_response({"message": "quota exceeded for key abc"}, status=503,
                                              text="quota exceeded for key abc")
    resp = client.get(f"/api/mcp/balance/ethereum/{VALID_ADDRESS}")
    assert resp.status_code == 503
    err = resp.json()["error"]
    assert err["kind"] == "data_fetch_failed"
    assert "quota" not in err["message"]


def test_allowance_route(client, session):
    session.post.return_value = make_response({"allowance": "77"})
    resp = client.post("/api/mcp/allowance", json={
        "chain": "ethereum", "contractAddress": CONTRACT_ADDRESS,
        "ownerAddress": VALID_ADDRESS, "spenderAddress": SPENDER_ADDRESS,
    })
    assert resp.status_code == 200
    assert resp.json()["data"]["payload"] == "77"


def test_allowance_route_missing_field(client):
    resp = client.post("/api/mcp/allowance", json={"chain": "ethereum", "contractAddress": CONTRACT_ADDRESS})
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "validation_error"
    assert err["fields"] == ["ownerAddress", "spenderAddress"]


def test_allowance_route_names_bad_fields(client, session):
    resp = client.post("/api/mcp/allowance", json={
        "chain": "ethereum", "contractAddress": "0x1",
        "ownerAddress": VALID_ADDRESS, "spenderAddress": "nope",
    })
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "validation_error"
    assert err["fields"] == ["contractAddress", "spenderAddress"]
    session.post.assert_not_called()


def test_allowance_route_unknown_chain(client, session):
    resp = client.post("/api/mcp/allowance", json={
        "chain": "solana", "contractAddress": CONTRACT_ADDRESS,
        "ownerAddress": VALID_ADDRESS, "spenderAddress": SPENDER_ADDRESS,
    })
    err = resp.json()["error"]
    assert err["kind"] == "unsupported_chain"
    assert err["fields"] == ["chain"]
    session.post.assert_not_called()


def test_balance_changes_route_forwards_extras(client, session):
    session.post.return_value = make_response({"items": [], "rpp": 5})
    resp = client.post("/api/mcp/balance-changes",
                       json={"chain": "xrpl", "accountAddress": XRPL_ADDRESS, "rpp": 5})
    assert resp.status_code == 200
    assert session.post.call_args.kwargs["json"] == {"rpp": 5, "accountAddress": XRPL_ADDRESS}


def test_query_route(client, session):
    session.post.return_value = make_response({"jsonrpc": "2.0", "id": 1, "result": "0x10"})
    resp = client.post("/api/mcp/query", json={"chain": "ethereum", "category": "eth",
                                               "method": "blockNumber", "params": []})
    assert resp.status_code == 200
    assert resp.json()["data"]["payload"] == "0x10"


def test_query_route_unsupported_chain(client, session):
    resp = client.post("/api/mcp/query", json={"chain": "solana", "category": "eth", "method": "blockNumber"})
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "unsupported_chain"
    assert err["fields"] == ["chain"]
    session.post.assert_not_called()


def test_query_route_on_chain_without_node(client, session):
    resp = client.post("/api/mcp/query", json={"chain": "xrpl", "category": "eth", "method": "blockNumber"})
    assert resp.status_code == 400
    assert resp.json()["error"]["kind"] == "unsupported_chain"
    session.post.assert_not_called()


def test_chat_route(client, session):
    session.post.return_value = make_response({"result": "1000000000000000000"})
    intent = {"kind": "wallet_balance", "chain": "ethereum", "address": VALID_ADDRESS, "chartKind": "line"}
    replies = iter([json.dumps(intent), "You hold 1 ETH."])
    with patch("chainlens.services.llm_client.complete", side_effect=lambda *a, **k: next(replies)):
        resp = client.post("/api/chat", json={"message": "balance?", "sessionId": "abc"})

    assert resp.status_code == 200
    assert resp.headers["X-Narrator"] == "llm"
    data = resp.json()["data"]
    assert data["message"] == "You hold 1 ETH."
    assert data["intent"] == "wallet_balance"
    assert data["sessionId"] == "abc"
    assert data["chartData"]["kind"] == "line"
    assert data["chartData"]["labels"] == ["Current Balance"]
    assert data["timestamp"]


def test_chat_route_missing_parameter(client):
    with patch("chainlens.services.llm_client.complete",
               return_value='{"kind": "token_balance", "chain": "ethereum"}'):
        resp = client.post("/api/chat", json={"message": "my tokens"})
    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["kind"] == "missing_parameter"
    assert err["fields"] == ["address"]


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "x" * 1001},
                                  {"message": "hi", "sessionId": "s" * 101}])
def test_chat_route_validation(client, body):
    resp = client.post("/api/chat", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"]["kind"] == "validation_error"


def test_validation_error_fields_are_names(client):
    resp = client.post("/api/chat", json={"message": ""})
    err = resp.json()["error"]
    assert err["fields"] == ["message"]
    assert "message" in err["message"]


def test_history_placeholders(client):
    resp = client.get("/api/chat/history/abc")
    assert resp.json() == {"success": True, "data": {"sessionId": "abc", "messages": []}}
    resp = client.delete("/api/chat/history/abc")
    assert resp.json()["success"] is True
