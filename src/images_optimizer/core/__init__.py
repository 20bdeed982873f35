"""Core utilities and shared components for the images optimizer."""

from .image_utils import (
    CANDIDATE_EXTENSIONS,
    PillowImageEngine,
    content_type_for_format,
    format_to_extension,
    plan_resize,
)
from .logging_config import get_logger, setup_logger
from .exceptions import (
    ConfigurationError,
    EnumerationError,
    FetchError,
    ImagesOptimizerError,
    PublishError,
    TranscodeError,
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

__all__ = [
    "OptimizerConfig",
    "CachedOriginal",
    "TranscodedArtifact",
    "ProcessingRecord",
    "RunReport",
    "Stage",
    "StageOutcome",
    "CANDIDATE_EXTENSIONS",
    "PillowImageEngine",
    "content_type_for_format",
    "format_to_extension",
    "plan_resize",
    "setup_logger",
    "get_logger",
    "ImagesOptimizerError",
    "EnumerationError",
    "FetchError",
    "TranscodeError",
    "PublishError",
    "ConfigurationError",
]
