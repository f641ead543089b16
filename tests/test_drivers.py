"""
Unit tests for the test drivers.

Tests:
- KAT label dispatch, case state and reset
- KAT end-to-end runs (pass, mismatch, ordering, workers)
- Monte Carlo checkpoint algorithm
- Monte Carlo end-to-end runs
"""

import hashlib

import pytest

from cavp_harness.core.oracle import CryptographyOracle, FunctionOracle, HashlibOracle
from cavp_harness.drivers.kat import KATDriver, KATLabel, KATState
from cavp_harness.drivers.monte_carlo import MonteCarloDriver, MCTLabel, run_checkpoint
from cavp_harness.drivers.results import FailureKind, RunMode
from cavp_harness.integration.event_logger import EventLogger
from cavp_harness.vectors.parser import classify_line


EMPTY_DIGEST = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
ABC_DIGEST = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
WRONG_DIGEST = "00" * 32
LONG_MSG = b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
LONG_DIGEST = "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1"


def kat_case(length, msg_hex, md):
    return [f"Len = {length}\n", f"Msg = {msg_hex}\n", f"MD = {md}\n", "\n"]


class RecordingOracle(FunctionOracle):
    """hashlib SHA-256 that remembers every message it was given."""

    def __init__(self):
        self.messages = []
        super().__init__(self._digest)

    def _digest(self, message):
        self.messages.append(message)
        return hashlib.sha256(message).digest()


def reference_checkpoints(seed, count):
    """SHAVS Monte Carlo with three rolling variables instead of a buffer."""
    results = []
    h = seed
    for _ in range(count):
        mc_1 = mc_2 = h
        for _ in range(1000):
            msg = mc_2 + mc_1 + h
            mc_2 = mc_1
            mc_1 = h
            h = hashlib.sha256(msg).digest()
        results.append(h)
    return results


def monte_lines(seed, digests, start=0):
    lines = ["# SHA-256 Monte\n", "\n", "[L = 32]\n", "\n", f"Seed = {seed.hex()}\n", "\n"]
    for count, digest in enumerate(digests, start=start):
        lines += [f"COUNT = {count}\n", f"MD = {digest.hex()}\n", "\n"]
    return lines


# ============================================================================
# KAT
# ============================================================================

class TestKATLabels:
    """Unit tests for KAT label dispatch."""

    def test_known_labels(self):
        assert KATLabel.from_token("Len") == KATLabel.LEN
        assert KATLabel.from_token("Msg") == KATLabel.MSG
        assert KATLabel.from_token("MD") == KATLabel.MD

    def test_case_insensitive(self):
        assert KATLabel.from_token("len") == KATLabel.LEN
        assert KATLabel.from_token("MSG") == KATLabel.MSG
        assert KATLabel.from_token("md") == KATLabel.MD

    def test_bracket_header(self):
        assert KATLabel.from_token("[L") == KATLabel.HEADER

    def test_unrecognized(self):
        assert KATLabel.from_token("COUNT") == KATLabel.UNRECOGNIZED
        assert KATLabel.from_token("Seed") == KATLabel.UNRECOGNIZED


class TestKATState:
    """Unit tests for the KAT case state machine."""

    def test_reset_case_clears_fields(self):
        state = KATState(length_bits=24, message=b"abc", have_len=True, have_msg=True,
                         len_error="x", msg_error="y")
        state.reset_case()
        assert state == KATState()
        assert state.error is None

    def test_feed_returns_record_only_on_md(self):
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        assert driver.feed(classify_line("Len = 24")) is None
        assert driver.feed(classify_line("Msg = 616263")) is None
        record = driver.feed(classify_line("MD = " + ABC_DIGEST))
        assert record.index == 1
        assert record.length_bits == 24
        assert record.message == b"abc"
        assert record.expected_digest == bytes.fromhex(ABC_DIGEST)
        assert record.error is None

    def test_state_reset_after_md(self):
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        for line in kat_case(24, "616263", ABC_DIGEST):
            if line.strip():
                driver.feed(classify_line(line))
        assert driver.state == KATState()

    def test_zero_length_ignores_msg(self):
        """With Len = 0 the Msg field content is never decoded."""
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        driver.feed(classify_line("Len = 0"))
        driver.feed(classify_line("Msg = deadbeef"))
        assert driver.state.message == b""

    def test_duplicate_field_overwrites(self):
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        driver.feed(classify_line("Len = 8"))
        driver.feed(classify_line("Msg = 00"))
        driver.feed(classify_line("Msg = 61"))
        record = driver.feed(classify_line("MD = 00"))
        assert record.message == b"a"

    def test_valid_msg_replaces_malformed_msg(self):
        """A later valid Msg clears the earlier decode error for the same case."""
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        result = driver.run_lines(["Len = 24", "Msg = zz", "Msg = 616263", f"MD = {ABC_DIGEST}"])
        assert (result.tests_run, result.failures) == (1, 0)

    def test_valid_len_replaces_invalid_len(self):
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        result = driver.run_lines(["Len = x", "Len = 24", "Msg = 616263", f"MD = {ABC_DIGEST}"])
        assert (result.tests_run, result.failures) == (1, 0)

    def test_malformed_msg_after_valid_msg_still_fails(self):
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        result = driver.run_lines(["Len = 24", "Msg = 616263", "Msg = zz", f"MD = {ABC_DIGEST}"])
        assert result.failures == 1
        assert result.failure_details[0].kind == FailureKind.MALFORMED_VECTOR


class TestKATDriver:
    """End-to-end KAT runs over in-memory and on-disk vectors."""

    def test_empty_message_passes(self):
        """Len = 0 / Msg = 00 / correct MD is one passing case."""
        driver = KATDriver(CryptographyOracle(), logger=EventLogger())
        result = driver.run_lines(["Len = 0\n", "Msg = 00\n", f"MD = {EMPTY_DIGEST}\n"])
        assert result.tests_run == 1
        assert result.failures == 0
        assert result.ok

    def test_oracle_sees_empty_bytes_for_zero_length(self):
        oracle = RecordingOracle()
        KATDriver(oracle, logger=EventLogger()).run_lines(kat_case(0, "00", EMPTY_DIGEST))
        assert oracle.messages == [b""]

    def test_wrong_digest_fails_case_one(self, capsys):
        driver = KATDriver(CryptographyOracle())
        result = driver.run_lines(["Len = 0\n", "Msg = 00\n", f"MD = {WRONG_DIGEST}\n"])
        assert result.tests_run == 1
        assert result.failures == 1
        failure = result.failure_details[0]
        assert failure.index == 1
        assert failure.kind == FailureKind.MISMATCH
        assert failure.actual == EMPTY_DIGEST

        out = capsys.readouterr().out
        assert "Failed test case #1" in out
        assert "Tests passed: 0 / 1" in out

    def test_adjacent_cases_do_not_leak(self):
        """A case never sees the previous case's message or length."""
        oracle = RecordingOracle()
        lines = kat_case(24, "616263", ABC_DIGEST) + kat_case(0, "00", EMPTY_DIGEST)
        result = KATDriver(oracle, logger=EventLogger()).run_lines(lines)
        assert oracle.messages == [b"abc", b""]
        assert result.failures == 0

    def test_continues_after_mismatch(self):
        lines = (
            kat_case(24, "616263", ABC_DIGEST)
            + kat_case(24, "616263", WRONG_DIGEST)
            + kat_case(0, "00", EMPTY_DIGEST)
        )
        result = KATDriver(HashlibOracle(), logger=EventLogger()).run_lines(lines)
        assert result.tests_run == 3
        assert result.failures == 1
        assert result.failure_details[0].index == 2
        assert result.summary() == "Tests passed: 2 / 3"

    def test_header_and_unknown_labels_ignored(self):
        lines = ["[L = 32]\n", "COUNT = 5\n"] + kat_case(24, "616263", ABC_DIGEST)
        result = KATDriver(HashlibOracle(), logger=EventLogger()).run_lines(lines)
        assert (result.tests_run, result.failures) == (1, 0)

    def test_lowercase_labels(self):
        lines = ["len = 24\n", "msg = 616263\n", f"md = {ABC_DIGEST}\n"]
        result = KATDriver(HashlibOracle(), logger=EventLogger()).run_lines(lines)
        assert (result.tests_run, result.failures) == (1, 0)

    def test_uppercase_expected_digest(self):
        result = KATDriver(HashlibOracle(), logger=EventLogger()).run_lines(
            kat_case(24, "616263", ABC_DIGEST.upper())
        )
        assert result.failures == 0

    def test_two_block_message(self):
        result = KATDriver(CryptographyOracle(), logger=EventLogger()).run_lines(
            kat_case(len(LONG_MSG) * 8, LONG_MSG.hex(), LONG_DIGEST)
        )
        assert (result.tests_run, result.failures) == (1, 0)

    def test_run_from_file(self, tmp_path):
        path = tmp_path / "SHA256ShortMsg.rsp"
        path.write_text(
            "#  CAVS 11.0\n#  \"SHA-256 ShortMsg\" information\n\n[L = 32]\n\n"
            + "".join(kat_case(0, "00", EMPTY_DIGEST) + kat_case(24, "616263", ABC_DIGEST))
        )
        result = KATDriver(CryptographyOracle(), logger=EventLogger()).run(path)
        assert result.vector_file == str(path)
        assert result.mode == RunMode.KAT
        assert (result.tests_run, result.failures) == (2, 0)

    def test_driver_reusable_across_files(self):
        """Case numbering and state start fresh for every run."""
        driver = KATDriver(HashlibOracle(), logger=EventLogger())
        driver.run_lines(kat_case(24, "616263", ABC_DIGEST))
        result = driver.run_lines(kat_case(24, "616263", WRONG_DIGEST))
        assert result.tests_run == 1
        assert result.failure_details[0].index == 1

    def test_workers_report_in_file_order(self):
        lines = []
        for i in range(20):
            md = WRONG_DIGEST if i % 3 == 0 else ABC_DIGEST
            lines += kat_case(24, "616263", md)

        sequential = KATDriver(HashlibOracle(), logger=EventLogger()).run_lines(lines)
        logger = EventLogger()
        threaded = KATDriver(HashlibOracle(), logger=logger, workers=4).run_lines(lines)

        assert threaded.tests_run == sequential.tests_run == 20
        assert threaded.failures == sequential.failures == 7
        assert [f.index for f in threaded.failure_details] == [1, 4, 7, 10, 13, 16, 19]
        logged = [e.details['index'] for e in logger.get_all_events() if 'index' in e.details]
        assert logged == list(range(1, 21))

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            KATDriver(HashlibOracle(), workers=0)


# ============================================================================
# Monte Carlo
# ============================================================================

class TestMCTLabels:
    """Unit tests for Monte Carlo label dispatch."""

    def test_known_labels(self):
        assert MCTLabel.from_token("Seed") == MCTLabel.SEED
        assert MCTLabel.from_token("COUNT") == MCTLabel.COUNT
        assert MCTLabel.from_token("MD") == MCTLabel.MD

    def test_case_insensitive(self):
        assert MCTLabel.from_token("seed") == MCTLabel.SEED
        assert MCTLabel.from_token("count") == MCTLabel.COUNT

    def test_header_and_unrecognized(self):
        assert MCTLabel.from_token("[L") == MCTLabel.HEADER
        assert MCTLabel.from_token("Len") == MCTLabel.UNRECOGNIZED


class TestRunCheckpoint:
    """Unit tests for the chained checkpoint algorithm."""

    def test_matches_rolling_reference(self):
        seed = hashlib.sha256(b"seed").digest()
        assert run_checkpoint(HashlibOracle(), seed) == reference_checkpoints(seed, 1)[0]

    def test_deterministic(self):
        seed = bytes(32)
        oracle = CryptographyOracle()
        assert run_checkpoint(oracle, seed) == run_checkpoint(oracle, seed)

    def test_thousand_digests_of_96_bytes(self):
        oracle = RecordingOracle()
        run_checkpoint(oracle, bytes(32))
        assert len(oracle.messages) == 1000
        assert all(len(m) == 96 for m in oracle.messages)

    def test_buffer_follows_round_count(self):
        """The chain buffer holds three seed slots plus one slot per round."""
        oracle = RecordingOracle()
        seed = bytes(range(32))
        last = run_checkpoint(oracle, seed, rounds=5)
        assert len(oracle.messages) == 5
        assert last == hashlib.sha256(oracle.messages[-1]).digest()

    def test_first_message_is_seed_three_times(self):
        oracle = RecordingOracle()
        seed = bytes(range(32))
        run_checkpoint(oracle, seed)
        assert oracle.messages[0] == seed * 3


class TestMonteCarloDriver:
    """End-to-end Monte Carlo runs."""

    def test_chained_checkpoints_pass(self):
        """Each checkpoint's output seeds the next one."""
        seed = hashlib.sha256(b"monte").digest()
        lines = monte_lines(seed, reference_checkpoints(seed, 3))
        result = MonteCarloDriver(HashlibOracle(), logger=EventLogger()).run_lines(lines)
        assert result.mode == RunMode.MONTE_CARLO
        assert (result.tests_run, result.failures) == (3, 0)
        assert result.summary() == "Tests passed: 3 / 3"

    def test_mismatch_halts_after_checkpoint_zero(self, capsys):
        """Zero seed with a wrong MD stops before COUNT = 1 is attempted."""
        oracle = RecordingOracle()
        lines = monte_lines(bytes(32), [bytes(32), bytes(32)])
        result = MonteCarloDriver(oracle).run_lines(lines)

        assert (result.tests_run, result.failures) == (1, 1)
        assert len(oracle.messages) == 1000
        failure = result.failure_details[0]
        assert failure.index == 0
        assert failure.kind == FailureKind.MISMATCH
        assert failure.expected == WRONG_DIGEST
        assert failure.actual == reference_checkpoints(bytes(32), 1)[0].hex()
        assert not result.aborted

        out = capsys.readouterr().out
        assert "Checkpoint 0 mismatch:" in out
        assert f"expected => 0x{WRONG_DIGEST}" in out
        assert f"got      => 0x{failure.actual}" in out
        assert "Tests passed: 0 / 1" in out

    def test_mismatch_at_later_checkpoint(self):
        seed = hashlib.sha256(b"later").digest()
        digests = reference_checkpoints(seed, 2) + [bytes(32), bytes(32)]
        result = MonteCarloDriver(HashlibOracle(), logger=EventLogger()).run_lines(
            monte_lines(seed, digests)
        )
        assert (result.tests_run, result.failures) == (3, 1)
        assert result.failure_details[0].index == 2

    def test_count_used_for_reporting_only(self):
        """Unusual COUNT values do not reset the chain."""
        seed = hashlib.sha256(b"count").digest()
        lines = monte_lines(seed, reference_checkpoints(seed, 2), start=40)
        logger = EventLogger()
        result = MonteCarloDriver(HashlibOracle(), logger=logger).run_lines(lines)
        assert result.failures == 0
        passed = [e.details['index'] for e in logger.get_all_events() if 'digest' in e.details]
        assert passed == [40, 41]

    def test_run_from_file(self, tmp_path):
        seed = hashlib.sha256(b"file").digest()
        path = tmp_path / "SHA256Monte.rsp"
        path.write_text("".join(monte_lines(seed, reference_checkpoints(seed, 1))))
        result = MonteCarloDriver(CryptographyOracle(), logger=EventLogger()).run(path)
        assert (result.tests_run, result.failures) == (1, 0)
        assert result.vector_file == str(path)
