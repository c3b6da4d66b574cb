from fastapi import APIRouter, Depends, Query, Request

from chainlens.core.config import ProviderConfig
from chainlens.deps import get_dispatcher, get_provider_config
from chainlens.models.domain import DispatchOutcome, Intent, IntentKind
from chainlens.models.dto import AllowanceRequest, BalanceChangesRequest, DataResponse, QueryRequest
from chainlens.routers.errors import pipeline_error_response
from chainlens.services.dispatcher import Dispatcher
from chainlens.services.validation import check_chain_addresses, supported_chain_names

router = APIRouter(prefix="/api/mcp", tags=["mcp"])


def _respond(outcome: DispatchOutcome, request: Request):
    if outcome.error is not None:
        return pipeline_error_response(outcome.error, request)
    return DataResponse(data=outcome.envelope.to_dict())


def _by_address(kind: IntentKind, chain: str, address: str, request: Request,
                provider: ProviderConfig, dispatcher: Dispatcher, options=None, field: str = "address"):
    err = check_chain_addresses(chain, [(field, address)], provider.chains)
    if err is not None:
        return pipeline_error_response(err, request)
    intent = Intent(kind=kind, chain=chain, address=address, requires_external_data=True)
    return _respond(dispatcher.dispatch(intent, options), request)


@router.get("/chains")
def chains(provider: ProviderConfig = Depends(get_provider_config)):
    return {"success": True, "data": supported_chain_names(provider.chains)}


@router.get("/balance/{chain}/{address}", response_model=DataResponse)
def balance(chain: str, address: str, request: Request,
            provider: ProviderConfig = Depends(get_provider_config),
            dispatcher: Dispatcher = Depends(get_dispatcher)):
    return _by_address(IntentKind.WALLET_BALANCE, chain, address, request, provider, dispatcher)


@router.get("/tokens/{chain}/{address}", response_model=DataResponse)
def tokens(chain: str, address: str, request: Request,
           provider: ProviderConfig = Depends(get_provider_config),
           dispatcher: Dispatcher = Depends(get_dispatcher)):
    return _by_address(IntentKind.TOKEN_BALANCE, chain, address, request, provider, dispatcher)


@router.get("/transactions/{chain}/{address}", response_model=DataResponse)
def transactions(chain: str, address: str, request: Request,
                 limit: int = Query(50, ge=1, le=1000), offset: int = Query(0, ge=0),
                 provider: ProviderConfig = Depends(get_provider_config),
                 dispatcher: Dispatcher = Depends(get_dispatcher)):
    return _by_address(IntentKind.TRANSACTION_HISTORY, chain, address, request, provider,
                       dispatcher, {"limit": limit, "offset": offset})


@router.post("/allowance", response_model=DataResponse)
def allowance(req: AllowanceRequest, request: Request,
              provider: ProviderConfig = Depends(get_provider_config),
              dispatcher: Dispatcher = Depends(get_dispatcher)):
    err = check_chain_addresses(req.chain, [
        ("contractAddress", req.contract_address),
        ("ownerAddress", req.owner_address),
        ("spenderAddress", req.spender_address),
    ], provider.chains)
    if err is not None:
        return pipeline_error_response(err, request)
    intent = Intent(
        kind=IntentKind.TOKEN_ALLOWANCE, chain=req.chain,
        contract_address=req.contract_address, owner_address=req.owner_address,
        spender_address=req.spender_address, requires_external_data=True,
    )
    return _respond(dispatcher.dispatch(intent), request)


@router.post("/balance-changes", response_model=DataResponse)
def balance_changes(req: BalanceChangesRequest, request: Request,
                    provider: ProviderConfig = Depends(get_provider_config),
                    dispatcher: Dispatcher = Depends(get_dispatcher)):
    return _by_address(IntentKind.TOKEN_BALANCE_CHANGES, req.chain, req.account_address,
                       request, provider, dispatcher, dict(req.model_extra or {}),
                       field="accountAddress")


@router.post("/query", response_model=DataResponse)
def query(req: QueryRequest, request: Request,
          provider: ProviderConfig = Depends(get_provider_config),
          dispatcher: Dispatcher = Depends(get_dispatcher)):
    err = check_chain_addresses(req.chain, [], provider.chains)
    if err is not None:
        return pipeline_error_response(err, request)
    intent = Intent(
        kind=IntentKind.CUSTOM_QUERY, chain=req.chain, requires_external_data=True,
        extra_params={"category": req.category, "method": req.method, "params": list(req.params)},
    )
    return _respond(dispatcher.dispatch(intent), request)
