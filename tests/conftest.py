"""
Shared test fixtures: a fake execution node standing in for requests.Session.

FakeNode answers JSON-RPC POSTs by method name, so tests never touch the
network. Results can be plain values, FakeResponse objects (for custom
envelopes / HTTP statuses) or exceptions (raised from post()).
"""

import os
import sys
import json
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ethhealth.config_loader import HealthCheckConfig

NOW = 1_700_000_000  # Fixed "current" Unix time for evaluator tests


class FakeResponse:
    """Minimal requests.Response stand-in."""

    def __init__(self, payload: Any = None, status_code: int = 200, text: Optional[str] = None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.closed = False

    def close(self):
        self.closed = True


def rpc_result(result: Any) -> FakeResponse:
    return FakeResponse({"jsonrpc": "2.0", "id": 1, "result": result})


def rpc_error(code: int, message: str) -> FakeResponse:
    return FakeResponse({"jsonrpc": "2.0", "id": 1, "error": {"code": code, "message": message}})


class FakeNode:
    """
    requests.Session replacement simulating a Geth node.

    Args:
        results: method -> result value (or FakeResponse / exception)
        queued: method -> list of answers consumed one per call before `results`
        get_status: HTTP status returned by the reachability GET
        get_exception: Exception raised by the reachability GET
    """

    def __init__(
        self,
        results: Optional[Dict[str, Any]] = None,
        queued: Optional[Dict[str, List[Any]]] = None,
        get_status: int = 405,
        get_exception: Optional[Exception] = None
    ):
        self.results = dict(results or {})
        self.queued = {k: list(v) for k, v in (queued or {}).items()}
        self.get_status = get_status
        self.get_exception = get_exception
        self.requests: List[Dict[str, Any]] = []
        self.post_kwargs: List[Dict[str, Any]] = []
        self.get_calls = 0
        self.closed = False

    @property
    def methods(self) -> List[str]:
        return [r["method"] for r in self.requests]

    def post(self, url, data=None, headers=None, timeout=None):
        request = json.loads(data)
        self.requests.append(request)
        self.post_kwargs.append({"url": url, "headers": headers, "timeout": timeout})
        method = request["method"]

        if self.queued.get(method):
            answer = self.queued[method].pop(0)
        elif method in self.results:
            answer = self.results[method]
        else:
            return rpc_error(-32601, f"the method {method} does not exist/is not available")

        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return rpc_result(answer)

    def get(self, url, timeout=None):
        self.get_calls += 1
        if self.get_exception is not None:
            raise self.get_exception
        return FakeResponse(text="", status_code=self.get_status)

    def close(self):
        self.closed = True


def healthy_node_results(now: int = NOW) -> Dict[str, Any]:
    """Answers of a synced mainnet node with 3 peers and a fresh head."""
    return {
        "web3_clientVersion": "Geth/v1.13.5-stable/linux-amd64/go1.21.4",
        "eth_blockNumber": "0x10",
        "net_peerCount": "0x3",
        "eth_syncing": False,
        "net_version": "1",
        "eth_getBlockByNumber": {"number": "0x10", "timestamp": hex(now - 12)},
    }


@pytest.fixture
def config(tmp_path):
    """Fast config: no retry delay, log file under tmp_path."""
    return HealthCheckConfig(
        execution_url="http://geth.test:8545",
        log_file=str(tmp_path / "logs" / "health-check.log"),
        timeout=5.0,
        retries=3,
        retry_delay=0.0,
    )


@pytest.fixture
def healthy_node():
    return FakeNode(results=healthy_node_results())
