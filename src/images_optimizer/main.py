"""Main module for the images optimizer CLI."""

import sys
import argparse
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from . import __version__
from .core.exceptions import ConfigurationError, EnumerationError
from .core.factories import LoggerFactory
from .core.logging_config import get_logger, set_debug_logging
from .core.models import OptimizerConfig
from .runner import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the ``run`` and ``version`` subcommands."""
    parser = argparse.ArgumentParser(
        prog="images-optimizer",
        description="Images Optimizer - fetch, resize, re-encode and republish S3 images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Optimize every listed image into WebP, at most 1024px wide
  images-optimizer run --source-bucket my-source --dest-bucket my-dest \\
                       --keys-url https://example.com/project/all

  # Try the first 10 keys only, with debug logging
  images-optimizer run --source-bucket my-source --dest-bucket my-dest \\
                       --keys-url https://example.com/project/all --debug-limit 10 --debug

  # Show version
  images-optimizer version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser(
        "run", help="Fetch, transcode and republish every listed image"
    )
    run_parser.add_argument("--source-bucket", required=True, help="Source S3 bucket")
    run_parser.add_argument("--dest-bucket", required=True, help="Destination S3 bucket")
    run_parser.add_argument(
        "--keys-url", required=True, help="URL of the project listing with the image keys"
    )
    run_parser.add_argument(
        "--cache-dir",
        type=Path,
        default=Path("original_images"),
        help="Directory holding fetched originals (default: original_images)",
    )
    run_parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("revised_images"),
        help="Directory holding transcoded images (default: revised_images)",
    )
    run_parser.add_argument(
        "--resize-threshold",
        type=int,
        default=1024,
        help="Images wider than this are scaled down to it (default: 1024)",
    )
    run_parser.add_argument(
        "--target-format",
        type=str,
        default="webp",
        choices=["webp", "png", "jpeg"],
        help="Output format (default: webp)",
    )
    run_parser.add_argument(
        "--quality", type=int, default=80, help="Encoder quality 1-100 (default: 80)"
    )
    run_parser.add_argument(
        "--debug-limit",
        type=int,
        default=None,
        help="Only process the first N keys",
    )
    run_parser.add_argument("--region", default=None, help="AWS region of the buckets")
    run_parser.add_argument(
        "--request-timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for the key listing request (default: 30)",
    )
    run_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")

    return parser


def config_from_args(args: argparse.Namespace) -> OptimizerConfig:
    """
    Build the run configuration from parsed arguments.

    Raises:
        ConfigurationError: If any option value is out of range
    """
    try:
        return OptimizerConfig(
            source_bucket=args.source_bucket,
            dest_bucket=args.dest_bucket,
            keys_url=args.keys_url,
            cache_dir=args.cache_dir,
            output_dir=args.output_dir,
            resize_threshold_px=args.resize_threshold,
            target_format=args.target_format,
            quality=args.quality,
            debug_limit=args.debug_limit,
            region=args.region,
            request_timeout=args.request_timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def run_command(args: argparse.Namespace) -> int:
    """Execute the ``run`` subcommand and return the process exit status."""
    logger = LoggerFactory.create_logger()
    if args.debug:
        set_debug_logging(logger.logger)

    try:
        config = config_from_args(args)
        run_pipeline(config, logger=logger)
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
        return 130
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except EnumerationError:
        # already logged by run_pipeline
        return 1
    except Exception as e:
        get_logger().error(f"Processing failed: {e}", exc_info=True)
        return 1
    return 0


def main(argv: Optional[list] = None) -> None:
    """Entry point for the ``images-optimizer`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        sys.exit(run_command(args))

    elif args.command == "version":
        print("Images Optimizer CLI")
        print(f"Version {__version__}")
        print("Fetch, resize and republish S3 images")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
