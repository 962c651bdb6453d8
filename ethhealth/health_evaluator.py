"""
Health Evaluator Module

Combines probe results into a single verdict. Evaluated once per run:

    reachability pre-flight --unreachable--> UNHEALTHY (no JSON-RPC calls)
            |
    latest block + peer count (mandatory) --any failure--> UNHEALTHY
    client version, sync status, network id, block age (best-effort)
            |
    peers == 0  -> UNHEALTHY
    peers == 1  -> DEGRADED
    peers >= 2  -> HEALTHY

A block older than one hour while the node reports it is not syncing is a
warning only; it never changes the verdict.
"""

import time
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

import pytz

from ethhealth.config_loader import HealthCheckConfig
from ethhealth.errors import HealthCheckError
from ethhealth.node_probes import NodeProbes, SyncStatus, network_name
from ethhealth.rpc_client import RpcClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_HEALTHY_PEERS = 2
STALE_BLOCK_AGE = timedelta(hours=1)

# Printed when the execution endpoint does not answer the pre-flight GET
TROUBLESHOOTING_STEPS = [
    ("Check if the Geth pod is running:", "kubectl get pod geth-0"),
    ("Check Geth pod logs:", "kubectl logs geth-0"),
    ("Verify the service definition:", "kubectl get svc geth -o yaml"),
    ("Try port-forwarding directly to the pod:", "kubectl port-forward pod/geth-0 8545:8545"),
]


class HealthVerdict(Enum):
    """Terminal states of a health check."""
    HEALTHY = "Healthy"        # Enough peers, mandatory probes succeeded
    DEGRADED = "Degraded"      # Reachable but low peer count
    UNHEALTHY = "Unhealthy"    # Unreachable, mandatory probe failed, or no peers


class FindingLevel(Enum):
    """Severity of a report finding; maps 1:1 onto log levels."""
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class Finding:
    """A warning or error discovered while evaluating the node."""
    level: FindingLevel
    message: str


@dataclass
class HealthReport:
    """
    Everything learned about the node in one run.

    Fields left as None could not be determined ("unknown" when rendered).
    Built by HealthEvaluator, consumed by Reporter, then discarded.
    """
    endpoint: str
    checked_at: datetime
    verdict: HealthVerdict = HealthVerdict.UNHEALTHY

    client_version: Optional[str] = None
    latest_block: Optional[int] = None
    is_syncing: Optional[bool] = None
    sync_progress: Optional[SyncStatus] = None  # Only set while syncing
    peer_count: Optional[int] = None
    network_id: Optional[str] = None
    network_name: Optional[str] = None
    last_block_age: Optional[timedelta] = None

    reachable: bool = True
    findings: List[Finding] = field(default_factory=list)
    troubleshooting: List[tuple] = field(default_factory=list)

    def add_finding(self, level: FindingLevel, message: str) -> None:
        self.findings.append(Finding(level, message))

    @property
    def warnings(self) -> List[str]:
        return [f.message for f in self.findings if f.level == FindingLevel.WARNING]

    @property
    def errors(self) -> List[str]:
        return [f.message for f in self.findings if f.level == FindingLevel.ERROR]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "checked_at": self.checked_at.isoformat(),
            "verdict": self.verdict.value,
            "reachable": self.reachable,
            "client_version": self.client_version,
            "latest_block": self.latest_block,
            "is_syncing": self.is_syncing,
            "sync_progress": self.sync_progress.to_dict() if self.sync_progress else None,
            "peer_count": self.peer_count,
            "network_id": self.network_id,
            "network_name": self.network_name,
            "last_block_age_seconds": (
                int(self.last_block_age.total_seconds()) if self.last_block_age is not None else None
            ),
            "warnings": self.warnings,
            "errors": self.errors,
        }


class HealthEvaluator:
    """
    Runs the probes in order and classifies the node.

    Attributes:
        client (RpcClient): Used for the reachability pre-flight
        probes (NodeProbes): Typed JSON-RPC probes
        config (HealthCheckConfig): Endpoint and timeouts
        clock: Returns the current Unix time in seconds (injectable for tests)
    """

    def __init__(
        self,
        client: RpcClient,
        probes: NodeProbes,
        config: HealthCheckConfig,
        clock: Callable[[], float] = time.time
    ):
        self.client = client
        self.probes = probes
        self.config = config
        self.clock = clock

    def evaluate(self) -> HealthReport:
        """
        Run the full check.

        Returns:
            HealthReport: Facts, findings and the verdict
        """
        endpoint = self.probes.endpoint
        report = HealthReport(
            endpoint=endpoint,
            checked_at=datetime.fromtimestamp(self.clock(), tz=pytz.utc)
        )

        logger.info(f"Checking if RPC endpoint {endpoint} is reachable...")
        reachability = self.client.check_reachability(endpoint, self.config.reachability_timeout)
        if not reachability.reachable:
            report.reachable = False
            report.add_finding(
                FindingLevel.ERROR,
                f"Geth RPC endpoint at {endpoint} is not reachable ({reachability.reason})"
            )
            report.troubleshooting = list(TROUBLESHOOTING_STEPS)
            report.verdict = HealthVerdict.UNHEALTHY
            return report

        logger.info("Checking node health...")
        report.client_version = self._optional(report, "client version", self.probes.client_version)
        report.latest_block = self._mandatory(report, "latest block number", self.probes.latest_block_number)
        report.peer_count = self._mandatory(report, "peer count", self.probes.peer_count)

        sync = self._optional(report, "sync status", self.probes.sync_status)
        if sync is not None:
            report.is_syncing = sync.is_syncing
            report.sync_progress = sync if sync.is_syncing else None

        network_id = self._optional(report, "network ID", self.probes.network_id)
        if network_id is not None:
            report.network_id = network_id
            report.network_name = network_name(network_id)

        if report.latest_block is not None:
            block_number = report.latest_block
            timestamp = self._optional(
                report, "block timestamp", lambda: self.probes.block_timestamp(block_number)
            )
            if timestamp is not None:
                report.last_block_age = timedelta(seconds=max(0, int(self.clock()) - timestamp))

        report.verdict = self._classify(report)
        self._check_staleness(report)
        return report

    def _mandatory(self, report: HealthReport, name: str, probe: Callable[[], T]) -> Optional[T]:
        try:
            return probe()
        except HealthCheckError as e:
            logger.debug(f"Mandatory probe {name} failed: {e}")
            report.add_finding(FindingLevel.ERROR, f"Failed to get {name}: {e}")
            return None

    def _optional(self, report: HealthReport, name: str, probe: Callable[[], T]) -> Optional[T]:
        try:
            return probe()
        except HealthCheckError as e:
            logger.debug(f"Optional probe {name} failed: {e}")
            report.add_finding(FindingLevel.WARNING, f"Unable to check {name}: {e}")
            return None

    @staticmethod
    def _classify(report: HealthReport) -> HealthVerdict:
        if report.latest_block is None or report.peer_count is None:
            return HealthVerdict.UNHEALTHY

        if report.peer_count == 0:
            report.add_finding(FindingLevel.WARNING, "No peers connected")
            return HealthVerdict.UNHEALTHY

        if report.peer_count < MIN_HEALTHY_PEERS:
            report.add_finding(
                FindingLevel.WARNING,
                f"Low peer count: {report.peer_count} (minimum: {MIN_HEALTHY_PEERS})"
            )
            return HealthVerdict.DEGRADED

        return HealthVerdict.HEALTHY

    @staticmethod
    def _check_staleness(report: HealthReport) -> None:
        # Warn only; a stale head never changes the verdict
        if report.last_block_age is None or report.is_syncing is not False:
            return
        if report.last_block_age > STALE_BLOCK_AGE:
            report.add_finding(
                FindingLevel.WARNING,
                f"Last block is over an hour old ({report.last_block_age} ago)"
            )
