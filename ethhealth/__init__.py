"""
Health check modules for Ethereum execution-layer nodes.

This package contains:
- rpc_client: JSON-RPC over HTTP with fixed-delay retries and a reachability pre-flight
- hex_codec: 0x-prefixed quantity encoding/decoding
- node_probes: eth_blockNumber, net_peerCount, eth_syncing, net_version,
  web3_clientVersion, eth_getBlockByNumber
- health_evaluator: Healthy / Degraded / Unhealthy classification
- reporter: console report, health log lines and exit codes
- logger_service: append-only health log and console logging
- config_loader: defaults, JSON config file and environment overrides

Usage:
    from ethhealth import load_config, RpcClient, NodeProbes, HealthEvaluator

    config = load_config()
    with RpcClient(config) as client:
        report = HealthEvaluator(client, NodeProbes(client), config).evaluate()
    print(report.verdict)
"""

from ethhealth.errors import HealthCheckError, TransportError, ProtocolError, FormatError
from ethhealth.hex_codec import hex_to_uint, uint_to_hex
from ethhealth.config_loader import HealthCheckConfig, ConfigLoader, load_config
from ethhealth.rpc_client import RpcClient, RPCRequest, RPCResponse, RPCError, Reachability
from ethhealth.node_probes import NodeProbes, SyncStatus, network_name
from ethhealth.health_evaluator import HealthEvaluator, HealthReport, HealthVerdict, Finding, FindingLevel
from ethhealth.logger_service import HealthLogService, setup_logging
from ethhealth.reporter import Reporter, exit_code_for

__all__ = [
    # Errors
    'HealthCheckError', 'TransportError', 'ProtocolError', 'FormatError',
    # Hex codec
    'hex_to_uint', 'uint_to_hex',
    # Config
    'HealthCheckConfig', 'ConfigLoader', 'load_config',
    # RPC
    'RpcClient', 'RPCRequest', 'RPCResponse', 'RPCError', 'Reachability',
    # Probes
    'NodeProbes', 'SyncStatus', 'network_name',
    # Evaluation
    'HealthEvaluator', 'HealthReport', 'HealthVerdict', 'Finding', 'FindingLevel',
    # Output
    'HealthLogService', 'setup_logging', 'Reporter', 'exit_code_for',
]
