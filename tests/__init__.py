# SHA-256 CAVP Harness Test Suite
"""
Comprehensive test suite including:
- Unit tests (codec, oracle adapter, parser, drivers)
- Integration tests (suite runner, CLI, event log)
- Security tests (malformed vectors, oracle failures, chain invariants)

Run with: pytest
"""
