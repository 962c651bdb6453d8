#!/usr/bin/env python3
"""
main.py - Ethereum execution node health check entry point

Runs one health check against a Geth (or any execution-layer) JSON-RPC
endpoint, prints a report, appends it to the health log and exits with
0 when the node is healthy, 1 otherwise.

Usage:
------
    python -m ethhealth.main                          # Check http://localhost:8545
    python -m ethhealth.main --url http://geth:8545   # Check another node
    python -m ethhealth.main --config config.json     # Load settings from a file
    python -m ethhealth.main --debug                  # Dump request/response bodies
    python -m ethhealth.main --json                   # Machine-readable output

Environment overrides: GETH_URL, LIGHTHOUSE_URL, LOG_FILE, DEBUG=true,
RPC_TIMEOUT, RPC_RETRIES, RPC_RETRY_DELAY.
"""

import sys
import argparse
import logging
from typing import List, Optional

from ethhealth.config_loader import HealthCheckConfig, load_config
from ethhealth.health_evaluator import HealthEvaluator
from ethhealth.logger_service import HealthLogService, setup_logging
from ethhealth.node_probes import NodeProbes
from ethhealth.reporter import Reporter
from ethhealth.rpc_client import RpcClient

# Configure main logger
logger = logging.getLogger(__name__)


def print_configuration(config: HealthCheckConfig) -> None:
    """Print the effective configuration before the check starts."""
    print("Starting health check with the following configuration:")
    print(f"  Geth URL: {config.execution_url}")
    print(f"  Lighthouse URL: {config.consensus_url}")
    print(f"  Log file: {config.log_file}")
    print(f"  Timeout: {config.timeout}s")
    print(f"  Retries: {config.retries}")
    print(f"  Retry delay: {config.retry_delay}s")
    if config.debug:
        print("  Debug mode enabled")
    print()


def run_check(config: HealthCheckConfig, health_log: HealthLogService, as_json: bool = False) -> int:
    """
    Run one health check.

    Args:
        config: Effective configuration
        health_log: Open health log the report is appended to
        as_json: Print the report as JSON

    Returns:
        int: Process exit code
    """
    with RpcClient(config) as client:
        evaluator = HealthEvaluator(client, NodeProbes(client), config)
        report = evaluator.evaluate()
    return Reporter(health_log).report(report, as_json=as_json)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ethereum execution node health check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ethhealth.main                          Check the local node
  python -m ethhealth.main --url http://geth:8545   Check another node
  python -m ethhealth.main --retries 0 --timeout 3  Fail fast
  python -m ethhealth.main --json                   JSON output for scripts

Exit codes:
  0  Healthy
  1  Degraded, unhealthy, or configuration/log file error
        """
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a JSON configuration file (optional)"
    )

    parser.add_argument(
        "--url", "-u",
        dest="execution_url",
        default=None,
        help="Execution client JSON-RPC URL (default: http://localhost:8545)"
    )

    parser.add_argument(
        "--log-file", "-l",
        default=None,
        help="Health log file (default: ~/.ethereum/health-check.log)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-attempt RPC timeout in seconds (default: 10)"
    )

    parser.add_argument(
        "--retries", "-r",
        type=int,
        default=None,
        help="Retries after a failed attempt (default: 3)"
    )

    parser.add_argument(
        "--retry-delay",
        type=float,
        default=None,
        help="Fixed delay between attempts in seconds (default: 2)"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Print request and response bodies"
    )

    parser.add_argument(
        "--json", "-j",
        action="store_true",
        help="Print the report as JSON"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    overrides = {
        "execution_url": args.execution_url,
        "log_file": args.log_file,
        "timeout": args.timeout,
        "retries": args.retries,
        "retry_delay": args.retry_delay,
        "debug": True if args.debug else None,
    }

    try:
        config = load_config(args.config, overrides)
    except FileNotFoundError as e:
        print(f"\n  Error: {e}")
        return 1
    except ValueError as e:
        print(f"\n  Configuration Error: {e}")
        return 1

    setup_logging(debug=config.debug, quiet=args.json)

    if not args.json:
        print_configuration(config)

    try:
        health_log = HealthLogService(config.log_file, timezone=config.log_timezone)
    except OSError as e:
        print(f"\n  Error opening log file: {e}")
        return 1

    with health_log:
        try:
            exit_code = run_check(config, health_log, as_json=args.json)
        except Exception as e:
            print(f"\n  Unexpected Error: {e}")
            logger.exception("Unexpected error in main()")
            return 1

    if not args.json:
        print(f"Results logged to: {health_log.path}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
