"""
Harness Configuration

Constants for the SHA-256 validation system and the run configuration
assembled from command-line arguments.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


# SHA-256 output size in bytes
DIGEST_SIZE = 32

# Monte Carlo parameters (SHAVS)
MCT_ROUNDS = 1000         # Chained digests per checkpoint

# Oracle invocation
DEFAULT_COMMAND = "./checksum"
DEFAULT_ALGORITHM_FLAG = "-sha256"
DEFAULT_ORACLE_TIMEOUT = 30.0   # Seconds per invocation
ORACLE_KINDS = ("process", "cryptography", "hashlib")

# Default NIST vector files
DEFAULT_KAT_FILES = ("SHA256ShortMsg.rsp", "SHA256LongMsg.rsp")
DEFAULT_MONTE_FILES = ("SHA256Monte.rsp",)

# Fallback location for relative vector paths
HARNESS_DIR = Path(__file__).resolve().parent


@dataclass
class HarnessConfig:
    """Settings for one harness invocation."""
    oracle: str = "process"
    command: str = DEFAULT_COMMAND
    algorithm_flag: str = DEFAULT_ALGORITHM_FLAG
    timeout: float = DEFAULT_ORACLE_TIMEOUT
    use_stdin: bool = False
    kat_files: List[str] = field(default_factory=lambda: list(DEFAULT_KAT_FILES))
    monte_files: List[str] = field(default_factory=lambda: list(DEFAULT_MONTE_FILES))
    vector_dirs: List[Path] = field(default_factory=list)
    workers: int = 1
    quiet: bool = False
    log_json: Optional[Path] = None

    def __post_init__(self):
        if self.oracle not in ORACLE_KINDS:
            raise ValueError(f"Unknown oracle '{self.oracle}', expected one of {ORACLE_KINDS}")
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")

    @classmethod
    def from_args(cls, args) -> 'HarnessConfig':
        """Build a config from a parsed argparse namespace."""
        kat_files = list(args.kat or [])
        monte_files = list(args.monte or [])
        if not kat_files and not monte_files:
            kat_files = list(DEFAULT_KAT_FILES)
            monte_files = list(DEFAULT_MONTE_FILES)

        return cls(
            oracle=args.oracle,
            command=args.command,
            algorithm_flag=args.algorithm_flag,
            timeout=args.timeout,
            use_stdin=args.stdin,
            kat_files=kat_files,
            monte_files=monte_files,
            vector_dirs=[Path(d) for d in (args.vector_dir or [])],
            workers=args.workers,
            quiet=args.quiet,
            log_json=Path(args.log_json) if args.log_json else None,
        )
