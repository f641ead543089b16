# SHA-256 CAVP Harness
"""
Conformance harness for SHA-256 implementations using NIST CAVP vectors:
- Known-Answer Tests (short and long message files)
- Monte Carlo Test (100 checkpoints of 1000 chained digests)

The implementation under test is reached through a HashOracle.
"""

__version__ = "1.0.0"
