"""
Reporter Module

Renders a HealthReport for humans (stdout) and for the health log, and maps
the verdict to the process exit code:

    HEALTHY   -> 0
    DEGRADED  -> 1
    UNHEALTHY -> 1
"""

import json
import sys
from datetime import timedelta
from typing import IO, List, Optional

from ethhealth.health_evaluator import FindingLevel, HealthReport, HealthVerdict
from ethhealth.logger_service import HealthLogService

EXIT_CODES = {
    HealthVerdict.HEALTHY: 0,
    HealthVerdict.DEGRADED: 1,
    HealthVerdict.UNHEALTHY: 1,
}

UNKNOWN = "unknown"
BANNER_WIDTH = 60


def exit_code_for(verdict: HealthVerdict) -> int:
    """Process exit code for a verdict (Degraded and Unhealthy both fail)."""
    return EXIT_CODES[verdict]


def _format_age(age: Optional[timedelta]) -> str:
    if age is None:
        return UNKNOWN
    return f"{timedelta(seconds=int(age.total_seconds()))} ago"


def _sync_text(report: HealthReport) -> str:
    if report.is_syncing is None:
        return UNKNOWN
    if not report.is_syncing:
        return "up to date"
    progress = report.sync_progress
    if progress is None or progress.progress_percent is None:
        return "currently syncing"
    return (
        f"currently syncing: {progress.progress_percent:.2f}% complete "
        f"({progress.current_block}/{progress.highest_block} blocks)"
    )


def _verdict_text(verdict: HealthVerdict) -> str:
    if verdict == HealthVerdict.DEGRADED:
        return "DEGRADED (Low peer count)"
    return verdict.value.upper()


class Reporter:
    """
    Writes a HealthReport to the console and the health log.

    Attributes:
        health_log (HealthLogService): Explicit log collaborator
        stream: Console output (default: sys.stdout)
    """

    def __init__(self, health_log: HealthLogService, stream: Optional[IO[str]] = None):
        self.health_log = health_log
        self.stream = stream if stream is not None else sys.stdout

    def render(self, report: HealthReport) -> str:
        """
        Build the multi-section console report.

        Facts first, then warnings/errors, troubleshooting steps (unreachable
        endpoint only), and the verdict banner last.
        """
        lines: List[str] = [
            "=" * BANNER_WIDTH,
            "  Ethereum Node Health Check",
            "=" * BANNER_WIDTH,
            f"Endpoint: {report.endpoint}",
            f"Checked at: {report.checked_at.isoformat(timespec='seconds')}",
        ]

        if report.reachable:
            if report.network_id is not None:
                network = f"{report.network_name} (ID: {report.network_id})"
            else:
                network = UNKNOWN
            lines += [
                "",
                f"Client version: {report.client_version or UNKNOWN}",
                f"Network: {network}",
                f"Node sync status: {_sync_text(report)}",
                f"Latest block number: {report.latest_block if report.latest_block is not None else UNKNOWN}",
                f"Last block age: {_format_age(report.last_block_age)}",
                f"Connected peers: {report.peer_count if report.peer_count is not None else UNKNOWN}",
            ]

        if report.findings:
            lines.append("")
            for finding in report.findings:
                lines.append(f"{finding.level.value}: {finding.message}")

        if report.troubleshooting:
            lines += ["", "Troubleshooting steps:"]
            for number, (step, command) in enumerate(report.troubleshooting, start=1):
                lines.append(f"{number}. {step}")
                lines.append(f"   {command}")

        lines += [
            "",
            "=" * BANNER_WIDTH,
            f"Node health status: {_verdict_text(report.verdict)}",
            "=" * BANNER_WIDTH,
        ]
        return "\n".join(lines)

    def render_json(self, report: HealthReport) -> str:
        """Machine-readable report (used by --json)."""
        payload = report.to_dict()
        payload["exit_code"] = exit_code_for(report.verdict)
        return json.dumps(payload, indent=2)

    def write_log(self, report: HealthReport) -> None:
        """Append the facts, every finding and the verdict to the health log."""
        log = self.health_log
        log.info(f"Health check of {report.endpoint}")

        if report.reachable:
            if report.client_version is not None:
                log.info(f"Client version: {report.client_version}")
            if report.is_syncing is not None:
                log.info(f"Node sync status: {_sync_text(report)}")
            if report.latest_block is not None:
                log.info(f"Latest block number: {report.latest_block}")
            if report.peer_count is not None:
                log.info(f"Connected peers: {report.peer_count}")
            if report.network_id is not None:
                log.info(f"Network: {report.network_name} (ID: {report.network_id})")

        for finding in report.findings:
            if finding.level == FindingLevel.ERROR:
                log.error(finding.message)
            else:
                log.warning(finding.message)

        status = f"Node health status: {_verdict_text(report.verdict)}"
        if report.verdict == HealthVerdict.HEALTHY:
            log.info(status)
        elif report.verdict == HealthVerdict.DEGRADED:
            log.warning(status)
        else:
            log.error(status)

    def report(self, report: HealthReport, as_json: bool = False) -> int:
        """
        Print the report, append it to the health log and return the exit code.

        Args:
            report: Result of HealthEvaluator.evaluate()
            as_json: Print JSON instead of the human-readable report

        Returns:
            int: Process exit code
        """
        output = self.render_json(report) if as_json else self.render(report)
        print(output, file=self.stream)
        self.write_log(report)
        return exit_code_for(report.verdict)
