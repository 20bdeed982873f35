"""Size-reduction report and run-level log output."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .models import OptimizerConfig, ProcessingRecord, RunReport, Stage, reduction_percent
from .protocols import LoggerProtocol

UNAVAILABLE = "unavailable"

REPORT_COLUMNS = ("key", "original", "revised", "reduction")


@dataclass
class ReportTotals:
    """Aggregate sizes over the records that have both sizes."""

    original_size: int
    revised_size: int
    record_count: int

    @property
    def reduction_percent(self) -> Optional[float]:
        return reduction_percent(self.original_size, self.revised_size)


def format_size(size: Optional[int]) -> str:
    """Render a byte size, or the sentinel when it is missing."""
    if size is None:
        return UNAVAILABLE
    return f"{size} bytes"


def format_percent(value: Optional[float]) -> str:
    """Render a percentage with one decimal, or the sentinel when it is missing."""
    if value is None:
        return UNAVAILABLE
    return f"{value:.1f}%"


def build_report_rows(records: Iterable[ProcessingRecord]) -> List[Dict[str, str]]:
    """One row per record, in record order."""
    return [
        {
            "key": record.key,
            "original": format_size(record.original_size),
            "revised": format_size(record.revised_size),
            "reduction": format_percent(record.reduction_percent),
        }
        for record in records
    ]


def compute_totals(records: Iterable[ProcessingRecord]) -> ReportTotals:
    """Sum the sizes of every record with both an original and a revised size."""
    original_total = 0
    revised_total = 0
    count = 0
    for record in records:
        if record.original_size is None or record.revised_size is None:
            continue
        original_total += record.original_size
        revised_total += record.revised_size
        count += 1
    return ReportTotals(
        original_size=original_total, revised_size=revised_total, record_count=count
    )


def render_table(rows: List[Dict[str, str]]) -> List[str]:
    """Render report rows as aligned text lines, header first."""
    widths = {
        column: max([len(column)] + [len(row[column]) for row in rows])
        for column in REPORT_COLUMNS
    }
    header = " | ".join(column.ljust(widths[column]) for column in REPORT_COLUMNS)
    lines = [header, "-+-".join("-" * widths[column] for column in REPORT_COLUMNS)]
    for row in rows:
        lines.append(
            " | ".join(
                row[column].ljust(widths[column])
                if column == "key"
                else row[column].rjust(widths[column])
                for column in REPORT_COLUMNS
            )
        )
    return lines


def render_totals(totals: ReportTotals) -> List[str]:
    return [
        f"Total original size: {totals.original_size} bytes",
        f"Total revised size:  {totals.revised_size} bytes",
        f"Total reduction:     {format_percent(totals.reduction_percent)}",
    ]


def log_configuration(config: OptimizerConfig, logger: LoggerProtocol) -> None:
    """Log the run configuration."""
    logger.info("=" * 80)
    logger.info("S3 IMAGE OPTIMIZER")
    logger.info("=" * 80)

    logger.info("CONFIGURATION:")
    logger.info(f"  Key listing:   {config.keys_url}")
    logger.info(f"  Source:        s3://{config.source_bucket}")
    logger.info(f"  Destination:   s3://{config.dest_bucket}")
    logger.info(f"  Cache dir:     {config.cache_dir}")
    logger.info(f"  Output dir:    {config.output_dir}")
    logger.info("")

    logger.info("PROCESSING OPTIONS:")
    logger.info(f"  Target format:    {config.target_format} (quality {config.quality})")
    logger.info(f"  Resize threshold: {config.resize_threshold_px}px wide")
    if config.debug_limit:
        logger.info(f"  Debug limit:      first {config.debug_limit} keys")
    logger.info("=" * 80)


def log_stage_progress(
    logger: LoggerProtocol,
    stage: Stage,
    completed: int,
    total: int,
    success_count: int,
    error_count: int,
) -> None:
    """Log progress within one stage."""
    progress = (completed / total) * 100 if total else 100.0
    logger.info(
        f"{stage.value.capitalize()} progress: {completed}/{total} ({progress:.1f}%) - "
        f"Success: {success_count}, Errors: {error_count}"
    )


def log_report(report: RunReport, logger: LoggerProtocol) -> None:
    """Log the size comparison table, the totals and the run statistics."""
    logger.info("=" * 80)
    logger.info("FILE SIZE COMPARISON")
    logger.info("=" * 80)
    for line in render_table(build_report_rows(report.records)):
        logger.info(line)
    logger.info("")

    totals = compute_totals(report.records)
    if totals.record_count:
        for line in render_totals(totals):
            logger.info(line)
    else:
        logger.info(f"Total reduction:     {UNAVAILABLE}")

    logger.info("=" * 80)
    logger.info(f"Total execution time: {report.processing_time:.1f}s")
    for stage_name, duration in report.stage_durations.items():
        logger.info(f"  {stage_name:<10} {duration:.1f}s")
    logger.info(
        f"Fetched: {report.count(Stage.FETCH)}, "
        f"Transcoded: {report.count(Stage.TRANSCODE)}, "
        f"Published: {report.count(Stage.PUBLISH)}, "
        f"Failed: {sum(1 for r in report.records if r.failed_stage is not None)}"
    )
    logger.info("=" * 80)
