"""
SHA-256 CAVP Harness - Main Entry Point

Validates a SHA-256 implementation against NIST CAVP vector files.

Usage:
  # default suite (SHA256ShortMsg.rsp, SHA256LongMsg.rsp, SHA256Monte.rsp)
  # against ./checksum -sha256 <file>
  cavp-harness --vector-dir vectors/

  # single files against an in-process implementation
  cavp-harness --oracle cryptography --kat SHA256ShortMsg.rsp --monte SHA256Monte.rsp
"""

import argparse
import sys
from typing import List, Optional

from .config import (
    DEFAULT_ALGORITHM_FLAG,
    DEFAULT_COMMAND,
    DEFAULT_ORACLE_TIMEOUT,
    ORACLE_KINDS,
    HarnessConfig,
)
from .core.oracle import create_oracle, self_test
from .integration.event_logger import create_event_logger
from .integration.suite import run_suite


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cavp-harness",
        description="Run NIST CAVP SHA-256 known-answer and Monte Carlo tests against a digest oracle",
    )
    p.add_argument('--oracle', choices=ORACLE_KINDS, default='process',
                   help='digest implementation to validate (default: process)')
    p.add_argument('--command', default=DEFAULT_COMMAND,
                   help=f'checksum utility for the process oracle (default: {DEFAULT_COMMAND})')
    p.add_argument('--algorithm-flag', default=DEFAULT_ALGORITHM_FLAG,
                   help=f'algorithm selection flag passed to the utility (default: {DEFAULT_ALGORITHM_FLAG})')
    p.add_argument('--timeout', type=float, default=DEFAULT_ORACLE_TIMEOUT,
                   help='seconds to wait for each oracle invocation')
    p.add_argument('--stdin', action='store_true',
                   help='pipe messages to the utility on stdin instead of a temporary file')
    p.add_argument('--kat', action='append', metavar='FILE',
                   help='known-answer vector file (repeatable)')
    p.add_argument('--monte', action='append', metavar='FILE',
                   help='Monte Carlo vector file (repeatable)')
    p.add_argument('--vector-dir', action='append', metavar='DIR',
                   help='extra directory to search for vector files (repeatable)')
    p.add_argument('--workers', type=int, default=1,
                   help='threads used to evaluate KAT cases (default: 1)')
    p.add_argument('--self-test', action='store_true',
                   help='check the oracle against a few published digests and exit')
    p.add_argument('--log-json', metavar='PATH',
                   help='write the event log as JSON to PATH')
    p.add_argument('--quiet', action='store_true',
                   help='suppress per-event console output')
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the harness. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = HarnessConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    oracle = create_oracle(config)

    if args.self_test:
        results = self_test(oracle)
        for label, ok in results:
            status = "✓ PASS" if ok else "✗ FAIL"
            print(f"{label:10s} {status}")
        return 0 if all(ok for _, ok in results) else 1

    logger = create_event_logger(console=not config.quiet)
    suite = run_suite(config, oracle=oracle, logger=logger)

    log_written = True
    if config.log_json:
        try:
            config.log_json.write_text(logger.export_log())
        except OSError as e:
            print(f"Cannot write event log {config.log_json}: {e}")
            log_written = False

    if not config.quiet:
        print("\n" + "=" * 60)
        print(f"Overall: {suite.tests_run - suite.failures} / {suite.tests_run} passed "
              f"across {len(suite.runs)} file(s)")
        for run in suite.runs:
            if not run.found:
                print(f"  missing: {run.vector_file}")
            elif run.aborted:
                print(f"  aborted: {run.vector_file} ({run.abort_reason})")

    if not log_written:
        return 1
    return suite.exit_code


if __name__ == "__main__":
    sys.exit(main())
