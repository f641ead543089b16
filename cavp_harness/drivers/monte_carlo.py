"""
Monte Carlo Test (MCT) Driver

Runs SHA256Monte.rsp style vector files:

    Seed = <64 hex digits>

    COUNT = 0
    MD = <64 hex digits>

Each MD closes one checkpoint. SHAVS checkpoint algorithm, per checkpoint j:

    MD[0] = MD[1] = MD[2] = Seed
    for i in 3..1002:
        MD[i] = SHA(MD[i-3] || MD[i-2] || MD[i-1])
    Seed = MD[1002]        # compared with the expected MD, then carried forward

A mismatch invalidates every later checkpoint, so the run stops at the
first failed checkpoint.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ..config import DIGEST_SIZE, MCT_ROUNDS
from ..core.hex_codec import bytes_to_hex, hex_to_bytes
from ..core.oracle import HashOracle
from ..errors import ChainInvariantViolation, MalformedHex, OracleFailure
from ..integration.event_logger import EventLogger, create_event_logger
from ..vectors.parser import (
    VectorLine,
    iter_fields,
    iter_vector_fields,
    resolve_vector_path,
)
from .results import CaseFailure, FailureKind, RunMode, RunResult


class MCTLabel(Enum):
    """Field labels understood by the Monte Carlo driver."""
    SEED = "seed"
    COUNT = "count"
    MD = "md"
    HEADER = "header"              # Bracketed declaration, e.g. [L = 32]
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_token(cls, token: str) -> 'MCTLabel':
        if token.startswith("["):
            return cls.HEADER
        lowered = token.lower()
        for label in (cls.SEED, cls.COUNT, cls.MD):
            if label.value == lowered:
                return label
        return cls.UNRECOGNIZED


def run_checkpoint(
    oracle: HashOracle,
    seed: bytes,
    rounds: int = MCT_ROUNDS,
    digest_size: int = DIGEST_SIZE
) -> bytes:
    """
    Run one checkpoint of chained digests starting from seed.

    Args:
        oracle: Digest oracle under test
        seed: Checkpoint seed (digest_size bytes)
        rounds: Chained digests per checkpoint
        digest_size: Expected oracle output size in bytes

    Returns:
        The final buffer entry, which is the next checkpoint's seed

    Raises:
        ChainInvariantViolation: If a concatenation is not 3 * digest_size
            bytes or an oracle output is not digest_size bytes
        OracleFailure: If the oracle cannot compute a digest
    """
    md = [seed, seed, seed] + [b""] * rounds
    message_size = 3 * digest_size

    for i in range(3, rounds + 3):
        message = md[i - 3] + md[i - 2] + md[i - 1]
        if len(message) != message_size:
            raise ChainInvariantViolation(
                f"Message for slot {i} is {len(message)} bytes, expected {message_size}",
                slot=i, length=len(message),
            )

        md[i] = oracle.digest(message)
        if len(md[i]) != digest_size:
            raise ChainInvariantViolation(
                f"Intermediate digest {i} is {len(md[i])} bytes, expected {digest_size}",
                slot=i, length=len(md[i]),
            )

    return md[rounds + 2]


@dataclass
class MCTState:
    """Chain state carried across checkpoints of one file."""
    seed: Optional[bytes] = None
    checkpoint_index: int = 0
    error: Optional[str] = None


class MonteCarloDriver:
    """
    Monte Carlo test runner.

    Usage:
        driver = MonteCarloDriver(ProcessOracle("./checksum"))
        result = driver.run("SHA256Monte.rsp")
    """

    def __init__(
        self,
        oracle: HashOracle,
        logger: Optional[EventLogger] = None,
        rounds: int = MCT_ROUNDS
    ):
        self.oracle = oracle
        self.logger = logger or create_event_logger()
        self.rounds = rounds
        self.state = MCTState()

    def _fail(self, result: RunResult, failure: CaseFailure) -> None:
        result.record_failure(failure)
        self.logger.log_checkpoint_failed(result.vector_file, failure)

    def _checkpoint(self, digest_text: str, result: RunResult) -> bool:
        """
        Run the checkpoint closed by an MD field.

        Returns:
            True if processing may continue with the next checkpoint
        """
        state = self.state
        index = state.checkpoint_index

        try:
            expected = hex_to_bytes(digest_text)
        except MalformedHex as e:
            self._fail(result, CaseFailure(index, FailureKind.MALFORMED_VECTOR, detail=f"MD: {e}"))
            return False

        expected_hex = bytes_to_hex(expected)
        if state.error or state.seed is None:
            detail = state.error or "No Seed before first MD"
            self._fail(result, CaseFailure(
                index, FailureKind.MALFORMED_VECTOR, expected=expected_hex, detail=detail,
            ))
            return False

        try:
            new_seed = run_checkpoint(self.oracle, state.seed, self.rounds)
        except ChainInvariantViolation as e:
            self._fail(result, CaseFailure(
                index, FailureKind.CHAIN_INVARIANT, expected=expected_hex, detail=str(e),
            ))
            result.abort(f"Checkpoint {index}: {e}")
            self.logger.log_run_aborted(result.vector_file, result.abort_reason)
            return False
        except OracleFailure as e:
            self._fail(result, CaseFailure(
                index, FailureKind.ORACLE_FAILURE, expected=expected_hex, detail=str(e),
            ))
            return False

        state.seed = new_seed
        actual_hex = bytes_to_hex(new_seed)
        if new_seed != expected:
            self._fail(result, CaseFailure(
                index, FailureKind.MISMATCH, expected=expected_hex, actual=actual_hex,
            ))
            return False

        result.record_pass()
        self.logger.log_checkpoint_passed(result.vector_file, index, actual_hex)
        return True

    def _run_fields(self, fields: Iterable[VectorLine], name: str) -> RunResult:
        self.state = MCTState()
        state = self.state

        result = RunResult(name, RunMode.MONTE_CARLO)
        self.logger.log_run_start(name, RunMode.MONTE_CARLO)

        for line in fields:
            label = MCTLabel.from_token(line.label)

            if label == MCTLabel.SEED:
                try:
                    state.seed = hex_to_bytes(line.value)
                    state.error = None
                except MalformedHex as e:
                    state.seed = None
                    state.error = f"Seed: {e}"

            elif label == MCTLabel.COUNT:
                # Reporting only; an unreadable COUNT keeps the previous index
                try:
                    state.checkpoint_index = int(line.value)
                except ValueError:
                    pass

            elif label == MCTLabel.MD:
                if not self._checkpoint(line.value, result):
                    break

        self.logger.log_run_complete(result)
        return result

    def run(
        self,
        vector_file: Union[str, Path],
        search_dirs: Optional[Sequence[Path]] = None
    ) -> RunResult:
        """
        Run every checkpoint in a Monte Carlo vector file.

        Raises:
            VectorFileNotFound: If the file cannot be located
        """
        path = resolve_vector_path(vector_file, search_dirs)
        return self._run_fields(iter_vector_fields(path), str(path))

    def run_lines(self, lines: Iterable[str], name: str = "<lines>") -> RunResult:
        """Run Monte Carlo checkpoints from in-memory text lines."""
        return self._run_fields(iter_fields(lines), name)
