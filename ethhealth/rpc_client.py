"""
rpc_client.py - JSON-RPC over HTTP client for execution-layer nodes

This module handles all interactions with the node's JSON-RPC endpoint:
- Building and serializing JSON-RPC 2.0 requests (id always 1, no batching)
- HTTP POST with a hard per-attempt timeout
- Fixed-delay retries on transport faults and malformed responses
- Decoding the response envelope; JSON-RPC errors are never retried
- Lightweight GET reachability pre-flight check

Usage:
    client = RpcClient(config)
    response = client.send(config.execution_url, "eth_blockNumber")
    block_hex = response.result
"""

import json
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from ethhealth.config_loader import HealthCheckConfig
from ethhealth.errors import HealthCheckError, ProtocolError, TransportError

# Configure module logger
logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
REQUEST_ID = 1


@dataclass
class RPCRequest:
    """A single JSON-RPC 2.0 call. Built fresh for every call."""
    method: str
    params: List[Any] = field(default_factory=list)
    jsonrpc: str = JSONRPC_VERSION
    id: int = REQUEST_ID

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "params": self.params,
            "id": self.id,
        }


@dataclass
class RPCError:
    """The error object of a JSON-RPC response."""
    code: int
    message: str


@dataclass
class RPCResponse:
    """
    A decoded JSON-RPC response envelope.

    Exactly one of result/error is meaningful. RpcClient.send never returns
    a response whose error is set; it raises ProtocolError instead.
    """
    jsonrpc: str
    id: Any
    result: Any = None
    error: Optional[RPCError] = None


@dataclass
class Reachability:
    """Outcome of the GET pre-flight check."""
    reachable: bool
    status_code: Optional[int] = None
    reason: Optional[str] = None


class RpcClient:
    """
    Sequential JSON-RPC client with fixed-delay retries.

    Attributes:
        config (HealthCheckConfig): Timeouts, retry count/delay, debug flag
        session (requests.Session): HTTP session used for every call

    Example:
        >>> with RpcClient(config) as client:
        ...     client.call("net_peerCount")
        '0x3'
    """

    HEADERS = {"Content-Type": "application/json"}

    def __init__(self, config: HealthCheckConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Health check configuration
            session: Optional pre-built session (tests inject a fake one)
        """
        self.config = config
        self.session = session if session is not None else requests.Session()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP session."""
        self.session.close()

    def send(self, endpoint: str, method: str, params: Optional[List[Any]] = None) -> RPCResponse:
        """
        Send one JSON-RPC request, retrying transport faults.

        Args:
            endpoint: Node URL
            method: JSON-RPC method name (e.g., "eth_blockNumber")
            params: Positional parameters (default: none)

        Returns:
            RPCResponse: Envelope with a result

        Raises:
            ProtocolError: Unserializable request, JSON-RPC error envelope, or a
                           malformed body on the final attempt
            TransportError: The final attempt failed to reach the endpoint
        """
        request = RPCRequest(method=method, params=list(params) if params else [])
        try:
            body = json.dumps(request.to_dict())
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"error marshaling {method} request: {e}") from e

        if self.config.debug:
            logger.debug(f"Sending request to {endpoint} | Method: {method} | Body: {body}")

        attempts = self.config.attempts
        last_error: Optional[HealthCheckError] = None

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                logger.warning(
                    f"Retrying connection to {endpoint} (attempt {attempt}/{attempts}) "
                    f"after error: {last_error}"
                )
                time.sleep(self.config.retry_delay)

            try:
                http_response = self.session.post(
                    endpoint,
                    data=body,
                    headers=self.HEADERS,
                    timeout=self.config.timeout
                )
            except requests.exceptions.Timeout as e:
                last_error = TransportError(f"timeout after {self.config.timeout}s sending {method}: {e}")
                continue
            except requests.exceptions.RequestException as e:
                last_error = TransportError(f"error sending {method} request: {e}")
                if self.config.debug:
                    logger.debug(f"Connection failed: {e}")
                continue

            if self.config.debug:
                logger.debug(f"Response status: {http_response.status_code} | Body: {http_response.text}")

            try:
                response = self._decode_envelope(http_response, method)
            except (TransportError, ProtocolError) as e:
                last_error = e
                continue

            if response.error is not None:
                # The node answered and rejected the call - retrying won't help
                raise ProtocolError(
                    f"RPC error: {response.error.message} (code: {response.error.code})",
                    code=response.error.code,
                    attempts=attempt
                )
            return response

        raise _with_attempts(last_error, attempts)

    def call(self, method: str, params: Optional[List[Any]] = None, endpoint: Optional[str] = None) -> Any:
        """Send a request to the execution endpoint (by default) and return its result."""
        return self.send(endpoint or self.config.execution_url, method, params).result

    def check_reachability(self, endpoint: str, timeout: Optional[float] = None) -> Reachability:
        """
        Pre-flight GET against the endpoint.

        Any HTTP status below 500 counts as reachable (a JSON-RPC server
        typically answers GET with 4xx). Connection failures and 5xx do not.

        Args:
            endpoint: Node URL
            timeout: Override for config.reachability_timeout

        Returns:
            Reachability: Result with a human-readable reason when unreachable
        """
        timeout = timeout if timeout is not None else self.config.reachability_timeout
        try:
            response = self.session.get(endpoint, timeout=timeout)
        except requests.exceptions.Timeout:
            return Reachability(False, reason=f"no response within {timeout}s")
        except requests.exceptions.RequestException as e:
            return Reachability(False, reason=f"connection failed: {e}")

        try:
            if response.status_code >= 500:
                return Reachability(
                    False,
                    status_code=response.status_code,
                    reason=f"server error HTTP {response.status_code}"
                )
            return Reachability(True, status_code=response.status_code)
        finally:
            response.close()

    @staticmethod
    def _decode_envelope(http_response: requests.Response, method: str) -> RPCResponse:
        """
        Parse and validate the JSON-RPC envelope of an HTTP response.

        Raises:
            TransportError: HTTP error status without a JSON-RPC envelope
            ProtocolError: Body is not a JSON-RPC envelope
        """
        status = http_response.status_code
        try:
            payload = json.loads(http_response.text)
        except ValueError as e:
            if status >= 400:
                raise TransportError(f"HTTP {status} for {method}") from e
            raise ProtocolError(f"error unmarshaling {method} response: {e}") from e

        if not isinstance(payload, dict) or ("result" not in payload and "error" not in payload):
            if status >= 400:
                raise TransportError(f"HTTP {status} for {method}")
            raise ProtocolError(f"unexpected {method} response shape: {str(payload)[:200]}")

        error = payload.get("error")
        rpc_error = None
        if error is not None:
            if isinstance(error, dict):
                code = error.get("code")
                rpc_error = RPCError(
                    code=code if isinstance(code, int) and not isinstance(code, bool) else -32603,
                    message=str(error.get("message", "unknown error"))
                )
            else:
                rpc_error = RPCError(code=-32603, message=str(error))
        elif status >= 400:
            raise TransportError(f"HTTP {status} for {method}")

        return RPCResponse(
            jsonrpc=payload.get("jsonrpc", ""),
            id=payload.get("id"),
            result=payload.get("result"),
            error=rpc_error
        )


def _with_attempts(error: HealthCheckError, attempts: int) -> HealthCheckError:
    """Re-create the last attempt's error with the attempt count attached."""
    message = f"failed after {attempts} attempts: {error.message}"
    if isinstance(error, ProtocolError):
        wrapped: HealthCheckError = ProtocolError(message, code=error.code, attempts=attempts)
    else:
        wrapped = TransportError(message, attempts=attempts)
    wrapped.__cause__ = error
    return wrapped
