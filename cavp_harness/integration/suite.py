"""
Suite Runner

Runs every scheduled vector file (KAT files first, then Monte Carlo files)
against one oracle. Each file is an isolated unit of work: a missing file
is logged and recorded as not found, and the remaining files still run.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from ..config import HarnessConfig
from ..core.oracle import HashOracle, create_oracle
from ..drivers.kat import KATDriver
from ..drivers.monte_carlo import MonteCarloDriver
from ..drivers.results import RunMode, RunResult, SuiteResult
from ..errors import VectorFileNotFound
from .event_logger import EventLogger, create_event_logger


def run_vector_file(
    driver: Union[KATDriver, MonteCarloDriver],
    vector_file: Union[str, Path],
    mode: RunMode,
    search_dirs: Optional[Sequence[Path]] = None
) -> RunResult:
    """
    Run one vector file, turning a missing file into a not-found result.
    """
    try:
        return driver.run(vector_file, search_dirs)
    except VectorFileNotFound as e:
        driver.logger.log_file_not_found(e.path, e.searched)
        result = RunResult(str(vector_file), mode, found=False)
        result.abort(str(e))
        return result


def run_suite(
    config: HarnessConfig,
    oracle: Optional[HashOracle] = None,
    logger: Optional[EventLogger] = None
) -> SuiteResult:
    """
    Run all KAT and Monte Carlo files named in the configuration.

    Args:
        config: Harness configuration
        oracle: Oracle to validate (built from config if omitted)
        logger: Event logger (console logger unless config.quiet)

    Returns:
        SuiteResult with one RunResult per scheduled file, in order
    """
    oracle = oracle or create_oracle(config)
    logger = logger or create_event_logger(console=not config.quiet)

    kat = KATDriver(oracle, logger, workers=config.workers)
    monte = MonteCarloDriver(oracle, logger)

    suite = SuiteResult()
    for vector_file in config.kat_files:
        suite.runs.append(run_vector_file(kat, vector_file, RunMode.KAT, config.vector_dirs))
    for vector_file in config.monte_files:
        suite.runs.append(run_vector_file(monte, vector_file, RunMode.MONTE_CARLO, config.vector_dirs))
    return suite
