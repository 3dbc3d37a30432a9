#!/usr/bin/env python3
"""
pRPC Client
JSON-RPC client for the pNode gossip endpoints (get-pods, get-pods-with-stats, get-stats)
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import requests
import urllib3

from .exceptions import RpcError

urllib3.disable_warnings()

logger = logging.getLogger(__name__)

DEFAULT_PRPC_PORT = 6000


class PrpcClient:
    """Talks JSON-RPC 2.0 to a single pNode at http://<host>:<port>/rpc"""

    def __init__(self, host: str, port: int = DEFAULT_PRPC_PORT, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.endpoint = f"http://{host}:{port}/rpc"
        self._request_id = 0

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'pnode-monitor/1.0',
            'Content-Type': 'application/json'
        })

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Issue a blocking JSON-RPC call and return its result member"""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._request_id
        }

        try:
            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(self.host, method, str(e)) from e

        if response.status_code != 200:
            raise RpcError(self.host, method, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(self.host, method, f"invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise RpcError(self.host, method, "response is not a JSON object")
        if data.get("error"):
            raise RpcError(self.host, method, f"remote error: {data['error']}")
        if "result" not in data:
            raise RpcError(self.host, method, "response has no result")

        return data["result"]

    def _pods_from_result(self, method: str, result: Any) -> List[Dict[str, Any]]:
        if not isinstance(result, dict):
            raise RpcError(self.host, method, "unexpected result shape")
        pods = result.get("pods") or []
        if not isinstance(pods, list):
            raise RpcError(self.host, method, "pods is not a list")
        return pods

    async def get_pods(self) -> List[Dict[str, Any]]:
        result = await asyncio.to_thread(self.call, "get-pods")
        return self._pods_from_result("get-pods", result)

    async def get_pods_with_stats(self) -> List[Dict[str, Any]]:
        result = await asyncio.to_thread(self.call, "get-pods-with-stats")
        return self._pods_from_result("get-pods-with-stats", result)

    async def get_stats(self) -> Dict[str, Any]:
        result = await asyncio.to_thread(self.call, "get-stats")
        if not isinstance(result, dict):
            raise RpcError(self.host, "get-stats", "unexpected result shape")
        return result


ClientFactory = Callable[[str, float], Any]


def make_client_factory(port: int = DEFAULT_PRPC_PORT) -> ClientFactory:
    """Build a factory creating PrpcClient instances bound to port"""

    def factory(host: str, timeout: float) -> PrpcClient:
        return PrpcClient(host, port=port, timeout=timeout)

    return factory
