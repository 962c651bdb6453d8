"""
Node Probes Module

Narrow questions asked of an execution-layer node, one JSON-RPC call each:
- latest_block_number(): eth_blockNumber
- peer_count(): net_peerCount
- sync_status(): eth_syncing
- network_id(): net_version
- client_version(): web3_clientVersion
- block_timestamp(n): eth_getBlockByNumber(n, false).timestamp

Every result is shape-checked before use; anything unexpected raises
FormatError naming the field. RPC failures propagate unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ethhealth.errors import FormatError
from ethhealth.hex_codec import hex_to_uint, uint_to_hex
from ethhealth.rpc_client import RpcClient

logger = logging.getLogger(__name__)

# net_version -> display name. Informational only, never affects the verdict.
NETWORK_NAMES: Dict[str, str] = {
    "1": "Ethereum Mainnet",
    "5": "Goerli Testnet",
    "11155111": "Sepolia Testnet",
}


def network_name(network_id: str) -> str:
    """Display name for a network id, "Unknown" if unmapped."""
    return NETWORK_NAMES.get(network_id, "Unknown")


@dataclass
class SyncStatus:
    """Result of eth_syncing."""
    is_syncing: bool
    current_block: Optional[int] = None
    highest_block: Optional[int] = None

    @property
    def progress_percent(self) -> Optional[float]:
        """current/highest as a percentage, None when not syncing or highest is 0."""
        if not self.is_syncing or not self.highest_block:
            return None
        return self.current_block / self.highest_block * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_syncing": self.is_syncing,
            "current_block": self.current_block,
            "highest_block": self.highest_block,
            "progress_percent": self.progress_percent,
        }


class NodeProbes:
    """
    Typed probes on top of RpcClient.

    Example:
        >>> probes = NodeProbes(client)
        >>> probes.peer_count()
        3
    """

    def __init__(self, client: RpcClient, endpoint: Optional[str] = None):
        self.client = client
        self.endpoint = endpoint or client.config.execution_url

    def _call(self, method: str, *params: Any) -> Any:
        result = self.client.send(self.endpoint, method, list(params)).result
        logger.debug(f"{method} -> {result!r}")
        return result

    def latest_block_number(self) -> int:
        return hex_to_uint(self._call("eth_blockNumber"), "latest block number")

    def peer_count(self) -> int:
        return hex_to_uint(self._call("net_peerCount"), "peer count")

    def sync_status(self) -> SyncStatus:
        """
        Decode eth_syncing.

        The node answers false when it is not syncing and an object with
        currentBlock/highestBlock (plus client-specific extras) while syncing.
        """
        result = self._call("eth_syncing")

        if result is False:
            return SyncStatus(is_syncing=False)

        if isinstance(result, dict):
            if "currentBlock" not in result or "highestBlock" not in result:
                raise FormatError(f"syncing object missing currentBlock/highestBlock: {result}", "sync status")
            return SyncStatus(
                is_syncing=True,
                current_block=hex_to_uint(result["currentBlock"], "sync status currentBlock"),
                highest_block=hex_to_uint(result["highestBlock"], "sync status highestBlock"),
            )

        raise FormatError(f"expected false or syncing object, got {result!r}", "sync status")

    def network_id(self) -> str:
        result = self._call("net_version")
        if not isinstance(result, str) or not (result.isascii() and result.isdigit()):
            raise FormatError(f"expected decimal string, got {result!r}", "network id")
        return result

    def client_version(self) -> str:
        result = self._call("web3_clientVersion")
        if not isinstance(result, str):
            raise FormatError(f"expected string, got {result!r}", "client version")
        return result

    def block_timestamp(self, block_number: int) -> int:
        """
        Unix timestamp (seconds) of a block.

        Args:
            block_number: Block to fetch (header only, no transactions)

        Returns:
            int: Block timestamp in seconds since the epoch

        Raises:
            FormatError: Block not found or timestamp not a hex quantity
        """
        block = self._call("eth_getBlockByNumber", uint_to_hex(block_number), False)
        if not isinstance(block, dict):
            raise FormatError(f"block {block_number} not returned (got {block!r})", "block")
        if "timestamp" not in block:
            raise FormatError(f"block {block_number} has no timestamp", "block timestamp")
        return hex_to_uint(block["timestamp"], "block timestamp")
