from __future__ import annotations
import logging
from typing import Any, Optional

import requests

from chainlens.core.config import ProviderConfig
from chainlens.models.domain import RequestEnvelope

log = logging.getLogger(__name__)


class ProviderError(Exception):
    """Transport failure, non-2xx answer or undecodable body from the data provider."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class NoditClient:
    """One POST per call against the Nodit web3 or node endpoints. No retries."""

    def __init__(self, config: ProviderConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def build_request(self, chain: str, category: str, method: str, params: dict) -> RequestEnvelope:
        return RequestEnvelope(chain=chain, category=category, method=method,
                               params=dict(params), api_key=self.config.api_key)

    def _headers(self, req: RequestEnvelope) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-API-KEY": req.api_key or "",
        }

    def _post(self, url: str, req: RequestEnvelope, body: Any) -> Any:
        try:
            resp = self.session.post(url, json=body, headers=self._headers(req),
                                     timeout=self.config.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"transport error: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise ProviderError(f"HTTP {resp.status_code} from provider",
                                status=resp.status_code, body=resp.text[:500])
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError("provider returned non-JSON body",
                                status=resp.status_code, body=resp.text[:500]) from e

    def web3(self, req: RequestEnvelope) -> Any:
        chain = self.config.get(req.chain)
        if chain is None:
            raise ProviderError(f"no web3 endpoint for chain {req.chain}")
        url = f"{chain.web3_url}{req.category}/{req.method}"
        log.debug("provider=web3 chain=%s url=%s", req.chain, url)
        return self._post(url, req, dict(req.params))

    def node(self, req: RequestEnvelope) -> Any:
        chain = self.config.get(req.chain)
        if chain is None or not chain.node_url:
            raise ProviderError(f"no node endpoint for chain {req.chain}")
        body = {
            "id": 1,
            "jsonrpc": "2.0",
            "method": f"{req.category}_{req.method}",
            "params": list(req.params.get("params") or []),
        }
        log.debug("provider=node chain=%s method=%s", req.chain, body["method"])
        data = self._post(chain.node_url, req, body)
        if isinstance(data, dict) and data.get("error"):
            raise ProviderError(f"JSON-RPC error: {data['error']}")
        return data
