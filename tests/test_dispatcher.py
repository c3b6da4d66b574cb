import pytest

from chainlens.models.domain import EnvelopeKind, ErrorKind, Intent, IntentKind
from chainlens.services.dispatcher import REQUIRED
from conftest import CONTRACT_ADDRESS, SPENDER_ADDRESS, VALID_ADDRESS, XRPL_ADDRESS, make_response


def _intent(kind, **kw):
    return Intent(kind=kind, requires_external_data=kind != IntentKind.GENERAL_QUESTION, **kw)


FULL = {
    IntentKind.WALLET_BALANCE: dict(chain="ethereum", address=VALID_ADDRESS),
    IntentKind.TOKEN_BALANCE: dict(chain="ethereum", address=VALID_ADDRESS),
    IntentKind.TRANSACTION_HISTORY: dict(chain="ethereum", address=VALID_ADDRESS),
    IntentKind.TOKEN_ALLOWANCE: dict(chain="ethereum", contract_address=CONTRACT_ADDRESS,
                                     owner_address=VALID_ADDRESS, spender_address=SPENDER_ADDRESS),
    IntentKind.TOKEN_BALANCE_CHANGES: dict(chain="xrpl", address=XRPL_ADDRESS),
    IntentKind.CUSTOM_QUERY: dict(chain="ethereum",
                                  extra_params={"category": "eth", "method": "blockNumber"}),
    IntentKind.GENERAL_QUESTION: dict(),
}


def test_every_kind_has_a_route():
    assert set(REQUIRED) == set(IntentKind)


@pytest.mark.parametrize("kind", list(IntentKind))
def test_dispatch_is_total(kind, dispatcher, session):
    outcome = dispatcher.dispatch(_intent(kind, **FULL[kind]))
    assert outcome.ok
    if kind == IntentKind.GENERAL_QUESTION:
        assert outcome.no_data is True
        assert outcome.envelope is None
        session.post.assert_not_called()
    else:
        assert outcome.no_data is False
        assert outcome.envelope is not None
        assert session.post.call_count == 1


def test_wallet_balance_routes_to_balance(dispatcher, session):
    session.post.return_value = make_response({"result": "1000000000000000000"})
    outcome = dispatcher.dispatch(_intent(IntentKind.WALLET_BALANCE, **FULL[IntentKind.WALLET_BALANCE]))
    assert outcome.envelope.kind == EnvelopeKind.BALANCE
    assert outcome.envelope.payload == "1000000000000000000"


def test_missing_address_is_reported(dispatcher, session):
    outcome = dispatcher.dispatch(_intent(IntentKind.WALLET_BALANCE, chain="ethereum"))
    assert outcome.error.kind == ErrorKind.MISSING_PARAMETER
    assert outcome.error.fields == ("address",)
    assert outcome.error.status_code == 400
    session.post.assert_not_called()


def test_missing_chain_is_not_defaulted(dispatcher, session):
    outcome = dispatcher.dispatch(_intent(IntentKind.TOKEN_BALANCE, address=VALID_ADDRESS))
    assert outcome.error.kind == ErrorKind.MISSING_PARAMETER
    assert outcome.error.fields == ("chain",)


def test_allowance_lists_all_missing_fields(dispatcher):
    outcome = dispatcher.dispatch(_intent(IntentKind.TOKEN_ALLOWANCE, chain="ethereum",
                                          owner_address=VALID_ADDRESS))
    assert outcome.error.fields == ("contractAddress", "spenderAddress")
    assert "contractAddress" in outcome.error.message


def test_custom_query_needs_category_and_method(dispatcher):
    outcome = dispatcher.dispatch(_intent(IntentKind.CUSTOM_QUERY, chain="ethereum",
                                          extra_params={"method": "blockNumber"}))
    assert outcome.error.kind == ErrorKind.MISSING_PARAMETER
    assert outcome.error.fields == ("category",)


def test_transaction_pagination_options(dispatcher, session):
    session.post.return_value = make_response({"items": []})
    dispatcher.dispatch(_intent(IntentKind.TRANSACTION_HISTORY, **FULL[IntentKind.TRANSACTION_HISTORY]),
                        {"limit": "10", "offset": 20})
    assert session.post.call_args.kwargs["json"]["limit"] == 10
    assert session.post.call_args.kwargs["json"]["offset"] == 20


def test_transaction_bad_pagination_uses_defaults(dispatcher, session):
    session.post.return_value = make_response({"items": []})
    dispatcher.dispatch(_intent(IntentKind.TRANSACTION_HISTORY, **FULL[IntentKind.TRANSACTION_HISTORY]),
                        {"limit": "many", "offset": -5})
    assert session.post.call_args.kwargs["json"]["limit"] == 50
    assert session.post.call_args.kwargs["json"]["offset"] == 0


def test_balance_changes_on_evm_chain_is_unsupported(dispatcher, session):
    outcome = dispatcher.dispatch(_intent(IntentKind.TOKEN_BALANCE_CHANGES, chain="ethereum",
                                          address=VALID_ADDRESS))
    assert outcome.error.kind == ErrorKind.UNSUPPORTED_CHAIN
    session.post.assert_not_called()


def test_custom_query_passes_params_through(dispatcher, session):
    session.post.return_value = make_response({"result": "0x1"})
    intent = _intent(IntentKind.CUSTOM_QUERY, chain="polygon",
                     extra_params={"category": "eth", "method": "getBalance",
                                   "params": [VALID_ADDRESS, "latest"]})
    outcome = dispatcher.dispatch(intent)
    assert outcome.envelope.payload == "0x1"
    body = session.post.call_args.kwargs["json"]
    assert body["method"] == "eth_getBalance"
    assert body["params"] == [VALID_ADDRESS, "latest"]
