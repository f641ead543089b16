"""
Known-Answer Test (KAT) Driver

Runs SHA256ShortMsg.rsp / SHA256LongMsg.rsp style vector files:

    [L = 32]

    Len = 24
    Msg = 616263
    MD = ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad

Len and Msg are accumulated into the current case; MD completes it. The
case is then evaluated against the oracle and the case state is reset so
nothing carries over into the next case. A mismatch never stops the run.

Completed cases are independent, so they can optionally be evaluated on a
thread pool; results are still tallied and reported in file order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from ..core.hex_codec import bytes_to_hex, hex_to_bytes
from ..core.oracle import HashOracle
from ..errors import MalformedHex, OracleFailure
from ..integration.event_logger import EventLogger, create_event_logger
from ..vectors.parser import (
    VectorLine,
    iter_fields,
    iter_vector_fields,
    resolve_vector_path,
)
from .results import CaseFailure, FailureKind, RunMode, RunResult


class KATLabel(Enum):
    """Field labels understood by the KAT driver."""
    LEN = "len"
    MSG = "msg"
    MD = "md"
    HEADER = "header"              # Bracketed declaration, e.g. [L = 32]
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_token(cls, token: str) -> 'KATLabel':
        if token.startswith("["):
            return cls.HEADER
        lowered = token.lower()
        for label in (cls.LEN, cls.MSG, cls.MD):
            if label.value == lowered:
                return label
        return cls.UNRECOGNIZED


@dataclass
class KATRecord:
    """A completed test case, ready for evaluation."""
    index: int                       # 1-based position in the file
    length_bits: int
    message: bytes
    expected_digest: bytes
    error: Optional[str] = None      # Set when the vector data is unusable


@dataclass
class KATState:
    """Fields accumulated for the case currently being read."""
    length_bits: int = 0
    message: bytes = b""
    have_len: bool = False
    have_msg: bool = False
    len_error: Optional[str] = None   # Cleared by the next valid Len
    msg_error: Optional[str] = None   # Cleared by the next valid Msg

    @property
    def error(self) -> Optional[str]:
        return self.len_error or self.msg_error

    def reset_case(self) -> None:
        """Clear all per-case fields after a case completes."""
        self.length_bits = 0
        self.message = b""
        self.have_len = False
        self.have_msg = False
        self.len_error = None
        self.msg_error = None


class KATDriver:
    """
    Known-answer test runner.

    Usage:
        driver = KATDriver(CryptographyOracle())
        result = driver.run("SHA256ShortMsg.rsp")
        print(result.summary())
    """

    def __init__(
        self,
        oracle: HashOracle,
        logger: Optional[EventLogger] = None,
        workers: int = 1
    ):
        """
        Args:
            oracle: Digest oracle under test
            logger: Event logger (a console logger is created if omitted)
            workers: Number of threads used to evaluate completed cases
        """
        if workers < 1:
            raise ValueError("Worker count must be at least 1")
        self.oracle = oracle
        self.logger = logger or create_event_logger()
        self.workers = workers
        self.state = KATState()
        self._case_count = 0

    # ========================================================================
    # State Machine
    # ========================================================================

    def feed(self, line: VectorLine) -> Optional[KATRecord]:
        """
        Apply one field event to the current case.

        Returns:
            The completed record when the field was MD, otherwise None
        """
        label = KATLabel.from_token(line.label)
        state = self.state

        if label == KATLabel.LEN:
            state.have_len = True
            try:
                state.length_bits = int(line.value)
                if state.length_bits < 0:
                    raise ValueError(line.value)
                state.len_error = None
            except ValueError:
                state.length_bits = 0
                state.len_error = f"Invalid Len {line.value!r}"

        elif label == KATLabel.MSG:
            state.have_msg = True
            if state.length_bits == 0:
                state.message = b""
                state.msg_error = None
            else:
                try:
                    state.message = hex_to_bytes(line.value)
                    state.msg_error = None
                except MalformedHex as e:
                    state.message = b""
                    state.msg_error = f"Msg: {e}"

        elif label == KATLabel.MD:
            return self._complete_case(line.value)

        return None

    def _complete_case(self, digest_text: str) -> KATRecord:
        state = self.state
        self._case_count += 1

        error = state.error
        try:
            expected = hex_to_bytes(digest_text)
        except MalformedHex as e:
            expected = b""
            error = error or f"MD: {e}"

        if error is None:
            if not (state.have_len and state.have_msg):
                missing = "Len" if not state.have_len else "Msg"
                error = f"Incomplete case, no {missing} before MD"
            elif len(state.message) * 8 != state.length_bits:
                error = f"Msg is {len(state.message) * 8} bits, Len is {state.length_bits}"

        record = KATRecord(
            index=self._case_count,
            length_bits=state.length_bits,
            message=state.message,
            expected_digest=expected,
            error=error,
        )
        state.reset_case()
        return record

    # ========================================================================
    # Evaluation
    # ========================================================================

    def evaluate(self, record: KATRecord) -> Tuple[int, Optional[CaseFailure]]:
        """
        Run one completed case through the oracle.

        Returns:
            (case index, failure or None if the case passed)
        """
        expected_hex = bytes_to_hex(record.expected_digest)

        if record.error:
            return record.index, CaseFailure(
                record.index, FailureKind.MALFORMED_VECTOR,
                expected=expected_hex, detail=record.error,
            )

        try:
            actual = self.oracle.digest(record.message)
        except OracleFailure as e:
            return record.index, CaseFailure(
                record.index, FailureKind.ORACLE_FAILURE,
                expected=expected_hex, detail=str(e),
            )

        if actual != record.expected_digest:
            return record.index, CaseFailure(
                record.index, FailureKind.MISMATCH,
                expected=expected_hex, actual=bytes_to_hex(actual),
            )
        return record.index, None

    # ========================================================================
    # Running Files
    # ========================================================================

    def _records(self, fields: Iterable[VectorLine]) -> Iterator[KATRecord]:
        for line in fields:
            record = self.feed(line)
            if record is not None:
                yield record

    def _run_fields(self, fields: Iterable[VectorLine], name: str) -> RunResult:
        self.state = KATState()
        self._case_count = 0

        result = RunResult(name, RunMode.KAT)
        self.logger.log_run_start(name, RunMode.KAT)

        records = self._records(fields)
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as ex:
                outcomes = list(ex.map(self.evaluate, records))
        else:
            outcomes = (self.evaluate(r) for r in records)

        for index, failure in outcomes:
            if failure is None:
                result.record_pass()
                self.logger.log_case_passed(name, index)
            else:
                result.record_failure(failure)
                self.logger.log_case_failed(name, failure)

        self.logger.log_run_complete(result)
        return result

    def run(
        self,
        vector_file: Union[str, Path],
        search_dirs: Optional[Sequence[Path]] = None
    ) -> RunResult:
        """
        Run every case in a KAT vector file.

        Raises:
            VectorFileNotFound: If the file cannot be located
        """
        path = resolve_vector_path(vector_file, search_dirs)
        return self._run_fields(iter_vector_fields(path), str(path))

    def run_lines(self, lines: Iterable[str], name: str = "<lines>") -> RunResult:
        """Run KAT cases from in-memory text lines."""
        return self._run_fields(iter_fields(lines), name)
