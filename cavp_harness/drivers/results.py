"""
Run Results

Pass/fail accumulators and per-file results shared by the KAT and
Monte Carlo drivers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class FailureKind(Enum):
    """Why a test case or checkpoint failed."""
    MISMATCH = "mismatch"                  # Oracle disagrees with the vector
    ORACLE_FAILURE = "oracle_failure"      # Oracle could not be invoked
    MALFORMED_VECTOR = "malformed_vector"  # Vector data could not be decoded
    CHAIN_INVARIANT = "chain_invariant"    # Monte Carlo buffer size violated


class RunMode(Enum):
    KAT = "kat"
    MONTE_CARLO = "monte_carlo"


@dataclass
class Accumulator:
    """Monotonic test counters for one vector file."""
    tests_run: int = 0
    failures: int = 0

    def record(self, passed: bool) -> None:
        self.tests_run += 1
        if not passed:
            self.failures += 1

    @property
    def passed(self) -> int:
        return self.tests_run - self.failures


@dataclass
class CaseFailure:
    """
    Diagnostic for one failed case.

    index is the 1-based test case number for KAT files and the
    checkpoint COUNT for Monte Carlo files.
    """
    index: int
    kind: FailureKind
    expected: str = ""
    actual: str = ""
    detail: str = ""

    def describe(self) -> str:
        text = f"{self.kind.value} at #{self.index}"
        if self.detail:
            text += f": {self.detail}"
        return text


@dataclass
class RunResult:
    """Outcome of running one vector file."""
    vector_file: str
    mode: RunMode
    tally: Accumulator = field(default_factory=Accumulator)
    failure_details: List[CaseFailure] = field(default_factory=list)
    found: bool = True
    aborted: bool = False
    abort_reason: str = ""

    @property
    def tests_run(self) -> int:
        return self.tally.tests_run

    @property
    def failures(self) -> int:
        return self.tally.failures

    @property
    def passed(self) -> int:
        return self.tally.passed

    @property
    def ok(self) -> bool:
        return self.found and not self.aborted and self.failures == 0

    def record_pass(self) -> None:
        self.tally.record(True)

    def record_failure(self, failure: CaseFailure) -> None:
        self.tally.record(False)
        self.failure_details.append(failure)

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason

    def summary(self) -> str:
        return f"Tests passed: {self.passed} / {self.tests_run}"


@dataclass
class SuiteResult:
    """Results of every vector file scheduled in one harness run."""
    runs: List[RunResult] = field(default_factory=list)

    @property
    def tests_run(self) -> int:
        return sum(r.tests_run for r in self.runs)

    @property
    def failures(self) -> int:
        return sum(r.failures for r in self.runs)

    @property
    def ok(self) -> bool:
        return bool(self.runs) and all(r.ok for r in self.runs)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
