"""
Hash Oracle Adapter

The harness validates a SHA-256 implementation it does not contain. That
implementation is reached through the HashOracle interface:

    digest(message: bytes) -> bytes

Oracles may produce raw bytes or a hex line (optionally "0x"-prefixed);
both are normalized to raw bytes before any comparison.

Implementations:
- ProcessOracle: external checksum utility (file or stdin input)
- CryptographyOracle: in-process SHA-256 from the cryptography package
- HashlibOracle: in-process reference from hashlib
- FunctionOracle: any callable, for embedding and testing
"""

import hashlib
import os
import shlex
import subprocess
import tempfile
from typing import Callable, List, Sequence, Tuple, Union

from cryptography.hazmat.primitives import hashes

from .hex_codec import hex_to_bytes
from ..config import (
    DEFAULT_ALGORITHM_FLAG,
    DEFAULT_ORACLE_TIMEOUT,
    HarnessConfig,
)
from ..errors import MalformedHex, OracleFailure, OracleUnavailable


DigestValue = Union[bytes, bytearray, str]

# Published SHA-256 digests (FIPS 180-4 examples)
SELF_TEST_VECTORS = [
    ("empty", b"",
     "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"),
    ("abc", b"abc",
     "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"),
    ("448-bit", b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq",
     "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1"),
]


def normalize_digest(value: DigestValue) -> bytes:
    """
    Convert an oracle result into canonical raw bytes.

    Args:
        value: Raw digest bytes, or a hex string with an optional 0x prefix

    Returns:
        Digest as bytes

    Raises:
        MalformedHex: If the value is neither bytes nor a valid hex string
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise MalformedHex(f"Unsupported digest type {type(value).__name__}")

    text = value.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if not text:
        raise MalformedHex("Empty digest string")
    return hex_to_bytes(text)


# ============================================================================
# Oracle Interface
# ============================================================================

class HashOracle:
    """
    Base class for digest oracles.

    Subclasses implement _compute(); digest() normalizes the result and
    turns unusable output into OracleFailure.
    """

    name = "oracle"

    def _compute(self, message: bytes) -> DigestValue:
        raise NotImplementedError()

    def digest(self, message: bytes) -> bytes:
        """
        Compute the digest of a message.

        Raises:
            OracleFailure: If the computation failed or produced no usable output
        """
        result = self._compute(bytes(message))
        if result is None:
            raise OracleFailure(f"{self.name} returned no digest")
        try:
            return normalize_digest(result)
        except MalformedHex as e:
            raise OracleFailure(f"{self.name} returned malformed output: {e}") from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class CryptographyOracle(HashOracle):
    """In-process SHA-256 from the cryptography package."""

    name = "cryptography"

    def _compute(self, message: bytes) -> bytes:
        h = hashes.Hash(hashes.SHA256())
        h.update(message)
        return h.finalize()


class HashlibOracle(HashOracle):
    """In-process digest from a hashlib constructor."""

    name = "hashlib"

    def __init__(self, factory: Callable = hashlib.sha256):
        self.factory = factory

    def _compute(self, message: bytes) -> bytes:
        return self.factory(message).digest()


class FunctionOracle(HashOracle):
    """Wraps a callable returning raw bytes or a hex string."""

    name = "function"

    def __init__(self, fn: Callable[[bytes], DigestValue]):
        self.fn = fn

    def _compute(self, message: bytes) -> DigestValue:
        try:
            return self.fn(message)
        except OracleFailure:
            raise
        except Exception as e:
            raise OracleFailure(f"Digest function raised {e.__class__.__name__}: {e}") from e


class ProcessOracle(HashOracle):
    """
    Runs an external checksum utility once per message.

    The message is written to a temporary file whose path is passed after
    the algorithm flag, i.e. `checksum -sha256 /tmp/cavp-xxxx.bin`. With
    use_stdin the message is piped instead and "-" is passed as the file.
    The first line of stdout is taken as the digest.
    """

    name = "process"

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        algorithm_flag: str = DEFAULT_ALGORITHM_FLAG,
        timeout: float = DEFAULT_ORACLE_TIMEOUT,
        use_stdin: bool = False
    ):
        if isinstance(command, str):
            command = shlex.split(command)
        if not command:
            raise ValueError("Oracle command cannot be empty")
        self.command: List[str] = list(command)
        self.algorithm_flag = algorithm_flag
        self.timeout = timeout
        self.use_stdin = use_stdin

    def _argv(self, target: str) -> List[str]:
        argv = list(self.command)
        if self.algorithm_flag:
            argv.append(self.algorithm_flag)
        argv.append(target)
        return argv

    def _run(self, argv: List[str], stdin_data: bytes = None) -> str:
        try:
            proc = subprocess.run(
                argv,
                input=stdin_data,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise OracleUnavailable(f"Oracle executable not found: {argv[0]}") from e
        except PermissionError as e:
            raise OracleUnavailable(f"Oracle executable not runnable: {argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise OracleFailure(f"Oracle timed out after {self.timeout}s") from e
        except OSError as e:
            raise OracleFailure(f"Oracle invocation failed: {e}") from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode(errors='replace').strip()
            raise OracleFailure(
                f"Oracle exited with status {proc.returncode}"
                + (f": {stderr}" if stderr else "")
            )

        lines = proc.stdout.decode(errors='replace').strip().splitlines()
        if not lines:
            raise OracleFailure("Oracle produced no output")
        return lines[0].strip()

    def _compute(self, message: bytes) -> str:
        if self.use_stdin:
            return self._run(self._argv("-"), stdin_data=message)

        try:
            fd, path = tempfile.mkstemp(prefix="cavp-", suffix=".bin")
        except OSError as e:
            raise OracleFailure(f"Cannot create message file: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(message)
            return self._run(self._argv(path))
        except OSError as e:
            raise OracleFailure(f"Cannot write message file: {e}") from e
        finally:
            if os.path.exists(path):
                os.unlink(path)

    def __repr__(self) -> str:
        return f"ProcessOracle({shlex.join(self._argv('<file>'))!r})"


# ============================================================================
# Convenience Functions
# ============================================================================

def create_oracle(config: HarnessConfig) -> HashOracle:
    """Create the oracle selected by the configuration."""
    if config.oracle == "cryptography":
        return CryptographyOracle()
    if config.oracle == "hashlib":
        return HashlibOracle()
    return ProcessOracle(
        config.command,
        algorithm_flag=config.algorithm_flag,
        timeout=config.timeout,
        use_stdin=config.use_stdin,
    )


def self_test(oracle: HashOracle) -> List[Tuple[str, bool]]:
    """
    Check an oracle against a few published SHA-256 digests.

    Returns:
        List of (vector label, passed) pairs
    """
    results = []
    for label, message, expected in SELF_TEST_VECTORS:
        try:
            ok = oracle.digest(message) == hex_to_bytes(expected)
        except OracleFailure:
            ok = False
        results.append((label, ok))
    return results
