"""Shared data models for the images optimizer."""

from enum import Enum
from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TargetFormat = Literal["webp", "png", "jpeg"]
ImageKey = Annotated[str, Field(min_length=1)]


def reduction_percent(pre: Optional[int], post: Optional[int]) -> Optional[float]:
    """Return 100 * (pre - post) / pre, or None if a size is missing or pre is 0."""
    if pre is None or post is None or pre == 0:
        return None
    return 100 * (pre - post) / pre


class OptimizerConfig(BaseModel):
    """Immutable configuration for one optimizer run."""

    model_config = ConfigDict(frozen=True)

    source_bucket: str = Field(min_length=1)
    dest_bucket: str = Field(min_length=1)
    keys_url: str = Field(min_length=1)
    cache_dir: Path = Path("original_images")
    output_dir: Path = Path("revised_images")
    resize_threshold_px: int = Field(default=1024, gt=0)
    target_format: TargetFormat = "webp"
    quality: int = Field(default=80, ge=1, le=100)
    debug_limit: Optional[int] = Field(default=None, ge=1)
    region: Optional[str] = None
    request_timeout: Optional[float] = Field(default=30.0, gt=0)


class ImageInfo(BaseModel):
    """Decoded header information of an image file."""

    model_config = ConfigDict(frozen=True)

    format: Optional[str] = None
    width: int = 0
    height: int = 0


class CachedOriginal(BaseModel):
    """A source image whose bytes are fully present on local disk."""

    model_config = ConfigDict(frozen=True)

    key: str
    path: Path
    byte_size: int
    width: int
    height: int


class TranscodedArtifact(BaseModel):
    """The normalized output produced from one cached original."""

    model_config = ConfigDict(frozen=True)

    key: str
    path: Path
    byte_size: int
    width: int
    height: int
    resized: bool = False


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    FETCH = "fetch"
    TRANSCODE = "transcode"
    PUBLISH = "publish"


class StageOutcome(BaseModel):
    """Result of one stage attempt for one key."""

    key: str
    stage: Stage
    success: bool = False
    error: str = ""
    processing_time: float = 0.0


class ProcessingRecord(BaseModel):
    """Per-key row tying the stages together for reporting."""

    key: str
    original: Optional[CachedOriginal] = None
    artifact: Optional[TranscodedArtifact] = None
    published: bool = False
    outcomes: List[StageOutcome] = Field(default_factory=list)

    @property
    def original_size(self) -> Optional[int]:
        return self.original.byte_size if self.original else None

    @property
    def revised_size(self) -> Optional[int]:
        return self.artifact.byte_size if self.artifact else None

    @property
    def reduction_percent(self) -> Optional[float]:
        """Size reduction in percent, or None when it cannot be computed."""
        return reduction_percent(self.original_size, self.revised_size)

    @property
    def failed_stage(self) -> Optional[Stage]:
        for outcome in self.outcomes:
            if not outcome.success:
                return outcome.stage
        return None

    def add_outcome(self, outcome: StageOutcome) -> None:
        self.outcomes.append(outcome)


class RunReport(BaseModel):
    """Everything a finished run produced."""

    records: List[ProcessingRecord] = Field(default_factory=list)
    stage_durations: Dict[str, float] = Field(default_factory=dict)
    processing_time: float = 0.0

    @property
    def total_items(self) -> int:
        return len(self.records)

    def count(self, stage: Stage, success: bool = True) -> int:
        """Count records whose attempt at ``stage`` ended with ``success``."""
        return sum(
            1
            for record in self.records
            for outcome in record.outcomes
            if outcome.stage == stage and outcome.success is success
        )


class Project(BaseModel):
    """One entry of the key enumeration response."""

    model_config = ConfigDict(extra="ignore")

    icon: ImageKey
    images: List[ImageKey]

    def keys(self) -> List[str]:
        return [self.icon, *self.images]


class ProjectEnvelope(BaseModel):
    """Enumeration entry with the project nested under a ``project`` field."""

    model_config = ConfigDict(extra="ignore")

    project: Project
