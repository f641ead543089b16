"""
Harness Errors

Exception taxonomy shared by the parser, the oracle adapter and both drivers.

- Parse-level problems (MalformedLine) are recovered locally by skipping.
- Digest-level problems (MalformedHex, OracleFailure) are counted as failed cases.
- Chain-breaking problems (ChainInvariantViolation) abort the current file.
"""


class HarnessError(Exception):
    """Base class for all harness errors."""
    pass


class VectorFileNotFound(HarnessError, FileNotFoundError):
    """Raised when a vector file cannot be located in any search location."""

    def __init__(self, path, searched=()):
        self.path = str(path)
        self.searched = [str(p) for p in searched]
        super().__init__(f"Cannot locate file [{self.path}]")


class MalformedLine(HarnessError, ValueError):
    """Raised when a vector line is not a `label = value` triple."""
    pass


class MalformedHex(HarnessError, ValueError):
    """Raised when a hex string has odd length or non-hex characters."""
    pass


class OracleFailure(HarnessError):
    """Raised when the digest computation could not be performed."""
    pass


class OracleUnavailable(OracleFailure):
    """Raised when the oracle executable cannot be found or started."""
    pass


class ChainInvariantViolation(HarnessError):
    """
    Raised when a Monte Carlo buffer entry or concatenation has the wrong size.

    This means the oracle does not produce digests of the expected size
    (for example, a different hash variant is configured).
    """

    def __init__(self, message: str, slot: int = -1, length: int = -1):
        self.slot = slot
        self.length = length
        super().__init__(message)
