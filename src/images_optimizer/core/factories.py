"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3

from .enumeration import HttpKeyProvider
from .image_utils import PillowImageEngine
from .models import OptimizerConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    ImageEngineProtocol,
    KeyProviderProtocol,
    LoggerProtocol,
    S3ClientProtocol,
)
from .services import (
    Fetcher,
    LocalCacheResolver,
    Publisher,
    RunOrchestrator,
    Transcoder,
)


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = "images-optimizer", level: Optional[str] = None
    ) -> StructuredLogger:
        """Create a configured structured logger."""
        return StructuredLogger(name, level=level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(region: Optional[str] = None, **kwargs: Any) -> S3ClientProtocol:
        """Create S3 client from the default credential chain."""
        session = boto3.Session(region_name=region)
        return session.client("s3", **kwargs)  # type: ignore


class OptimizerPipelineFactory:
    """Factory for creating the complete optimizer pipeline."""

    @staticmethod
    def create_pipeline(
        config: OptimizerConfig,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        key_provider: Optional[KeyProviderProtocol] = None,
        image_engine: Optional[ImageEngineProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> RunOrchestrator:
        """Create a fully configured orchestrator for ``config``."""

        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(region=config.region)

        if logger is None:
            logger = LoggerFactory.create_logger()

        if key_provider is None:
            key_provider = HttpKeyProvider(
                config.keys_url, logger, timeout=config.request_timeout
            )

        if image_engine is None:
            image_engine = PillowImageEngine()

        resolver = LocalCacheResolver(config.cache_dir, image_engine, logger)
        fetcher = Fetcher(
            s3_client, config.source_bucket, config.cache_dir, image_engine, logger
        )
        transcoder = Transcoder(
            config.output_dir,
            image_engine,
            logger,
            target_format=config.target_format,
            resize_threshold_px=config.resize_threshold_px,
            quality=config.quality,
        )
        publisher = Publisher(
            s3_client, config.dest_bucket, logger, target_format=config.target_format
        )

        return RunOrchestrator(
            config=config,
            key_provider=key_provider,
            resolver=resolver,
            fetcher=fetcher,
            transcoder=transcoder,
            publisher=publisher,
            logger=logger,
            metrics_collector=metrics_collector,
        )
