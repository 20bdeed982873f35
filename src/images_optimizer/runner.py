"""
Run entry point of the images optimizer.

Enumerates keys → fetches originals into the cache → transcodes → uploads,
then logs the size comparison report.
"""

from typing import Optional

from .core.exceptions import EnumerationError
from .core.factories import LoggerFactory, OptimizerPipelineFactory
from .core.models import OptimizerConfig, RunReport
from .core.protocols import LoggerProtocol
from .core.report import log_configuration, log_report
from .core.services import RunOrchestrator


def run_pipeline(
    config: OptimizerConfig,
    pipeline: Optional[RunOrchestrator] = None,
    logger: Optional[LoggerProtocol] = None,
) -> RunReport:
    """
    Execute one full optimizer run.

    Args:
        config: Run configuration
        pipeline: Pre-built orchestrator; created from ``config`` when omitted
        logger: Logger for run-level output

    Returns:
        The report of the finished run

    Raises:
        EnumerationError: If the key list could not be obtained. No stage has
            run in that case.
    """
    logger = logger or LoggerFactory.create_logger()
    log_configuration(config, logger)

    if pipeline is None:
        pipeline = OptimizerPipelineFactory.create_pipeline(config, logger=logger)

    try:
        report = pipeline.run()
    except EnumerationError as e:
        logger.error(f"Could not enumerate source keys, aborting run: {e}")
        raise

    log_report(report, logger)
    return report
