"""
Unit tests for the reporter: console rendering, health log lines and
exit code mapping.

Run tests with: python -m pytest tests/test_reporter.py -v
"""

import os
import sys
import io
import json
import pytest
from datetime import datetime, timedelta

import pytz

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ethhealth.health_evaluator import (
    TROUBLESHOOTING_STEPS,
    FindingLevel,
    HealthReport,
    HealthVerdict,
)
from ethhealth.logger_service import HealthLogService
from ethhealth.node_probes import SyncStatus
from ethhealth.reporter import Reporter, exit_code_for

CHECKED_AT = datetime(2026, 10, 19, 14, 5, 9, tzinfo=pytz.utc)


def healthy_report(**overrides) -> HealthReport:
    values = dict(
        endpoint="http://geth.test:8545",
        checked_at=CHECKED_AT,
        verdict=HealthVerdict.HEALTHY,
        client_version="Geth/v1.13.5-stable",
        latest_block=16,
        is_syncing=False,
        peer_count=3,
        network_id="1",
        network_name="Ethereum Mainnet",
        last_block_age=timedelta(seconds=12),
    )
    values.update(overrides)
    return HealthReport(**values)


class TestExitCodes:

    @pytest.mark.parametrize("verdict,code", [
        (HealthVerdict.HEALTHY, 0),
        (HealthVerdict.DEGRADED, 1),
        (HealthVerdict.UNHEALTHY, 1),
    ])
    def test_exit_code_for(self, verdict, code):
        assert exit_code_for(verdict) == code


class TestReporter:

    @pytest.fixture
    def log_stream(self):
        return io.StringIO()

    @pytest.fixture
    def out(self):
        return io.StringIO()

    @pytest.fixture
    def reporter(self, log_stream, out):
        health_log = HealthLogService(stream=log_stream)
        yield Reporter(health_log, stream=out)
        health_log.close()

    # === Console Output ===

    def test_render_healthy(self, reporter):
        text = reporter.render(healthy_report())

        assert "Endpoint: http://geth.test:8545" in text
        assert "Checked at: 2026-10-19T14:05:09+00:00" in text
        assert "Client version: Geth/v1.13.5-stable" in text
        assert "Network: Ethereum Mainnet (ID: 1)" in text
        assert "Node sync status: up to date" in text
        assert "Latest block number: 16" in text
        assert "Last block age: 0:00:12 ago" in text
        assert "Connected peers: 3" in text
        assert text.splitlines()[-2] == "Node health status: HEALTHY"

    def test_render_unknown_fields(self, reporter):
        text = reporter.render(healthy_report(
            client_version=None, latest_block=None, is_syncing=None,
            network_id=None, network_name=None, last_block_age=None,
            verdict=HealthVerdict.UNHEALTHY
        ))

        assert "Client version: unknown" in text
        assert "Network: unknown" in text
        assert "Node sync status: unknown" in text
        assert "Latest block number: unknown" in text
        assert "Last block age: unknown" in text
        assert "Node health status: UNHEALTHY" in text

    def test_render_syncing_progress(self, reporter):
        progress = SyncStatus(is_syncing=True, current_block=50, highest_block=200)
        text = reporter.render(healthy_report(is_syncing=True, sync_progress=progress))
        assert "Node sync status: currently syncing: 25.00% complete (50/200 blocks)" in text

    def test_render_degraded(self, reporter):
        report = healthy_report(verdict=HealthVerdict.DEGRADED, peer_count=1)
        report.add_finding(FindingLevel.WARNING, "Low peer count: 1 (minimum: 2)")
        text = reporter.render(report)

        assert "WARNING: Low peer count: 1 (minimum: 2)" in text
        assert "Node health status: DEGRADED (Low peer count)" in text

    def test_render_unreachable_with_troubleshooting(self, reporter):
        report = healthy_report(
            reachable=False, verdict=HealthVerdict.UNHEALTHY,
            troubleshooting=list(TROUBLESHOOTING_STEPS)
        )
        report.add_finding(FindingLevel.ERROR, "Geth RPC endpoint at http://geth.test:8545 is not reachable")
        text = reporter.render(report)

        assert "Connected peers" not in text
        assert "ERROR: Geth RPC endpoint at http://geth.test:8545 is not reachable" in text
        assert "1. Check if the Geth pod is running:" in text
        assert "   kubectl get pod geth-0" in text
        # Verdict banner is always last
        assert text.index("Troubleshooting steps:") < text.index("Node health status: UNHEALTHY")

    def test_render_json(self, reporter):
        payload = json.loads(reporter.render_json(healthy_report()))

        assert payload["verdict"] == "Healthy"
        assert payload["exit_code"] == 0
        assert payload["network_name"] == "Ethereum Mainnet"

    # === Health Log ===

    def test_write_log_lines(self, reporter, log_stream):
        report = healthy_report(verdict=HealthVerdict.UNHEALTHY, peer_count=0)
        report.add_finding(FindingLevel.WARNING, "No peers connected")

        reporter.write_log(report)
        lines = log_stream.getvalue().splitlines()

        assert lines[0].endswith("[INFO] Health check of http://geth.test:8545")
        assert any(line.endswith("[INFO] Connected peers: 0") for line in lines)
        assert any(line.endswith("[WARNING] No peers connected") for line in lines)
        assert lines[-1].endswith("[ERROR] Node health status: UNHEALTHY")

    def test_error_findings_logged_as_errors(self, reporter, log_stream):
        report = healthy_report(verdict=HealthVerdict.UNHEALTHY, peer_count=None)
        report.add_finding(FindingLevel.ERROR, "Failed to get peer count: boom")

        reporter.write_log(report)

        assert "[ERROR] Failed to get peer count: boom" in log_stream.getvalue()

    def test_degraded_verdict_logged_as_warning(self, reporter, log_stream):
        reporter.write_log(healthy_report(verdict=HealthVerdict.DEGRADED, peer_count=1))
        assert log_stream.getvalue().splitlines()[-1].endswith(
            "[WARNING] Node health status: DEGRADED (Low peer count)"
        )

    def test_report_prints_logs_and_returns_code(self, reporter, out, log_stream):
        code = reporter.report(healthy_report())

        assert code == 0
        assert "Node health status: HEALTHY" in out.getvalue()
        assert "[INFO] Node health status: HEALTHY" in log_stream.getvalue()

    def test_report_as_json(self, reporter, out):
        code = reporter.report(healthy_report(verdict=HealthVerdict.DEGRADED), as_json=True)

        assert code == 1
        assert json.loads(out.getvalue())["exit_code"] == 1
