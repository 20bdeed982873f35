"""Service implementations for the fetch, transcode and publish pipeline."""

import os
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .error_handling import StageErrorCollector, with_error_handling
from .exceptions import FetchError, ImagesOptimizerError, PublishError, TranscodeError
from .image_utils import (
    CANDIDATE_EXTENSIONS,
    TEMP_SUFFIX,
    content_type_for_format,
    format_to_extension,
    local_path_for,
    plan_resize,
)
from .models import (
    CachedOriginal,
    OptimizerConfig,
    ProcessingRecord,
    RunReport,
    Stage,
    StageOutcome,
    TranscodedArtifact,
)
from .observability import LogContext, MetricsCollector, timed_operation
from .protocols import (
    ImageEngineProtocol,
    KeyProviderProtocol,
    LoggerProtocol,
    S3ClientProtocol,
)
from .report import log_stage_progress


def _check_response_status(response: Dict[str, Any]) -> Optional[int]:
    """Return the HTTP status of a non-2xx S3 response, None otherwise."""
    if not isinstance(response, dict):
        return None
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status is not None and not 200 <= status < 300:
        return status
    return None


class LocalCacheResolver:
    """Finds a previously fetched original on local disk."""

    def __init__(
        self,
        cache_dir: Path,
        image_engine: ImageEngineProtocol,
        logger: LoggerProtocol,
        extensions: Sequence[str] = CANDIDATE_EXTENSIONS,
    ):
        self._cache_dir = Path(cache_dir)
        self._image_engine = image_engine
        self._logger = logger
        self._extensions = tuple(extensions)

    @with_error_handling(FetchError)
    def resolve(self, key: str) -> Optional[CachedOriginal]:
        """
        Return the cached original for ``key``, or None on a cache miss.

        Only ``<cache_dir>/<key><ext>`` for the candidate extensions is tested,
        so keys that are prefixes of each other never collide.
        """
        for ext in self._extensions:
            candidate = local_path_for(self._cache_dir, key, ext)
            if not candidate.is_file():
                continue

            info = self._image_engine.probe(candidate)
            self._logger.debug(
                "Using cached original",
                LogContext(operation="resolve", component="cache_resolver").with_metadata(
                    key=key, path=str(candidate)
                ),
            )
            return CachedOriginal(
                key=key,
                path=candidate,
                byte_size=candidate.stat().st_size,
                width=info.width,
                height=info.height,
            )
        return None


class Fetcher:
    """Downloads originals into the cache with an atomic commit."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        source_bucket: str,
        cache_dir: Path,
        image_engine: ImageEngineProtocol,
        logger: LoggerProtocol,
    ):
        self._s3_client = s3_client
        self._source_bucket = source_bucket
        self._cache_dir = Path(cache_dir)
        self._image_engine = image_engine
        self._logger = logger

    @with_error_handling(FetchError)
    def fetch(self, key: str) -> CachedOriginal:
        """
        Download ``key`` and commit it as ``<cache_dir>/<key><ext>``.

        The body is streamed to ``<key>.tmp`` first; the extension comes from
        the decoded format of the downloaded bytes. The rename of the temp file
        is the only point where a canonically named file appears, so the cache
        never holds a partially written original under a name the resolver
        would accept.
        """
        context = LogContext(operation="fetch", component="fetcher").with_metadata(key=key)
        temp_path = local_path_for(self._cache_dir, key, TEMP_SUFFIX)
        temp_path.parent.mkdir(parents=True, exist_ok=True)

        self._logger.debug(f"Downloading from s3://{self._source_bucket}/{key}", context)
        response = self._s3_client.get_object(Bucket=self._source_bucket, Key=key)
        status = _check_response_status(response)
        if status is not None:
            raise FetchError(f"Source store returned HTTP status {status}", key=key)

        body = response["Body"]
        try:
            with open(temp_path, "wb") as fh:
                shutil.copyfileobj(body, fh, self.CHUNK_SIZE)
                fh.flush()
                os.fsync(fh.fileno())

            info = self._image_engine.probe(temp_path)
            final_path = local_path_for(
                self._cache_dir, key, format_to_extension(info.format)
            )
            os.replace(temp_path, final_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise
        finally:
            close = getattr(body, "close", None)
            if close is not None:
                close()

        byte_size = final_path.stat().st_size
        self._logger.debug(
            "Cached original",
            context.with_metadata(path=str(final_path), byte_size=byte_size),
        )
        return CachedOriginal(
            key=key,
            path=final_path,
            byte_size=byte_size,
            width=info.width,
            height=info.height,
        )


class Transcoder:
    """Applies the resize-and-encode policy to cached originals."""

    def __init__(
        self,
        output_dir: Path,
        image_engine: ImageEngineProtocol,
        logger: LoggerProtocol,
        target_format: str = "webp",
        resize_threshold_px: int = 1024,
        quality: int = 80,
    ):
        self._output_dir = Path(output_dir)
        self._image_engine = image_engine
        self._logger = logger
        self._target_format = target_format
        self._resize_threshold_px = resize_threshold_px
        self._quality = quality

    def output_path_for(self, key: str) -> Path:
        """Deterministic artifact path of ``key``."""
        return local_path_for(
            self._output_dir, key, format_to_extension(self._target_format)
        )

    @with_error_handling(TranscodeError)
    def transcode(self, original: CachedOriginal) -> TranscodedArtifact:
        """Write the normalized artifact of ``original``, overwriting any earlier one."""
        dest = self.output_path_for(original.key)
        size = plan_resize(original.width, original.height, self._resize_threshold_px)

        context = LogContext(operation="transcode", component="transcoder").with_metadata(
            key=original.key
        )
        if size is not None:
            self._logger.debug(
                f"Resizing {original.width}x{original.height} to {size[0]}x{size[1]}",
                context,
            )

        info = self._image_engine.convert(
            original.path,
            dest,
            self._target_format,
            size=size,
            quality=self._quality,
        )
        byte_size = dest.stat().st_size
        self._logger.debug(
            f"Encoded {self._target_format}",
            context.with_metadata(path=str(dest), byte_size=byte_size),
        )
        return TranscodedArtifact(
            key=original.key,
            path=dest,
            byte_size=byte_size,
            width=info.width,
            height=info.height,
            resized=size is not None,
        )


class Publisher:
    """Uploads artifacts to the destination bucket under their original key."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        dest_bucket: str,
        logger: LoggerProtocol,
        target_format: str = "webp",
    ):
        self._s3_client = s3_client
        self._dest_bucket = dest_bucket
        self._logger = logger
        self._content_type = content_type_for_format(target_format)

    @with_error_handling(PublishError)
    def publish(self, artifact: TranscodedArtifact, key: str) -> None:
        body = Path(artifact.path).read_bytes()
        self._logger.debug(
            f"Uploading to s3://{self._dest_bucket}/{key}",
            LogContext(operation="publish", component="publisher").with_metadata(
                key=key, content_type=self._content_type
            ),
        )
        response = self._s3_client.put_object(
            Bucket=self._dest_bucket,
            Key=key,
            Body=body,
            ContentType=self._content_type,
        )
        status = _check_response_status(response)
        if status is not None:
            raise PublishError(f"Destination store returned HTTP status {status}", key=key)


class RunOrchestrator:
    """Drives the fetch, transcode and publish stages over the whole key list."""

    def __init__(
        self,
        config: OptimizerConfig,
        key_provider: KeyProviderProtocol,
        resolver: LocalCacheResolver,
        fetcher: Fetcher,
        transcoder: Transcoder,
        publisher: Publisher,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config
        self._key_provider = key_provider
        self._resolver = resolver
        self._fetcher = fetcher
        self._transcoder = transcoder
        self._publisher = publisher
        self._logger = logger
        self._metrics_collector = metrics_collector or MetricsCollector()

    def run(self) -> RunReport:
        """
        Run all three stages and return the per-key records.

        Every stage finishes for all keys before the next stage starts. A key
        that fails a stage is logged and left out of the later stages; its
        record stays in the report in input order.

        Raises:
            EnumerationError: If the key list cannot be obtained
        """
        start_time = time.time()
        keys = self._select_keys(self._key_provider.list_keys())

        Path(self._config.cache_dir).mkdir(parents=True, exist_ok=True)
        Path(self._config.output_dir).mkdir(parents=True, exist_ok=True)

        records = [ProcessingRecord(key=key) for key in keys]
        self._logger.info(f"Number of images to process: {len(records)}")

        stages = (
            (Stage.FETCH, self._fetch_all),
            (Stage.TRANSCODE, self._transcode_all),
            (Stage.PUBLISH, self._publish_all),
        )
        for stage, run_stage in stages:
            timed_operation(stage.value, self._logger, self._metrics_collector)(run_stage)(
                records
            )

        return RunReport(
            records=records,
            stage_durations=self._metrics_collector.durations(),
            processing_time=time.time() - start_time,
        )

    def _select_keys(self, keys: List[str]) -> List[str]:
        """Drop repeated keys and apply the debug limit."""
        seen = set()
        unique: List[str] = []
        for key in keys:
            if key in seen:
                self._logger.warning(f"Skipping duplicate key {key}")
                continue
            seen.add(key)
            unique.append(key)

        if self._config.debug_limit is not None:
            unique = unique[: self._config.debug_limit]
        return unique

    def _fetch_all(self, records: List[ProcessingRecord]) -> None:
        def acquire(record: ProcessingRecord) -> None:
            record.original = self._resolver.resolve(record.key) or self._fetcher.fetch(
                record.key
            )

        self._run_stage(Stage.FETCH, records, acquire)

    def _transcode_all(self, records: List[ProcessingRecord]) -> None:
        def transcode(record: ProcessingRecord) -> None:
            record.artifact = self._transcoder.transcode(record.original)

        self._run_stage(Stage.TRANSCODE, [r for r in records if r.original], transcode)

    def _publish_all(self, records: List[ProcessingRecord]) -> None:
        def publish(record: ProcessingRecord) -> None:
            self._publisher.publish(record.artifact, record.key)
            record.published = True

        self._run_stage(Stage.PUBLISH, [r for r in records if r.artifact], publish)

    def _run_stage(
        self,
        stage: Stage,
        records: List[ProcessingRecord],
        operation: Callable[[ProcessingRecord], None],
    ) -> None:
        """Apply ``operation`` to each record in order, isolating per-key failures."""
        total = len(records)
        success_count = 0

        with StageErrorCollector(stage.value, self._logger) as collector:
            for index, record in enumerate(records, start=1):
                outcome = StageOutcome(key=record.key, stage=stage)
                started = time.time()
                try:
                    operation(record)
                    outcome.success = True
                    success_count += 1
                except ImagesOptimizerError as e:
                    outcome.error = str(e)
                    collector.add_error(str(e), record.key)
                outcome.processing_time = time.time() - started
                record.add_outcome(outcome)

                log_stage_progress(
                    self._logger,
                    stage,
                    index,
                    total,
                    success_count,
                    len(collector.errors),
                )
