"""Protocol definitions for dependency injection and testability."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import ImageInfo


class S3ClientProtocol(Protocol):
    """Protocol for S3 client operations."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...


class ImageEngineProtocol(Protocol):
    """Protocol for the image decode/resize/encode capability."""

    def probe(self, path: Path) -> ImageInfo:
        """Read format and dimensions from the image header."""
        ...

    def convert(
        self,
        source: Path,
        dest: Path,
        target_format: str,
        size: Optional[Tuple[int, int]] = None,
        quality: int = 80,
    ) -> ImageInfo:
        """Encode ``source`` into ``dest``, resizing to ``size`` when given."""
        ...


class KeyProviderProtocol(Protocol):
    """Protocol for the source key enumeration."""

    def list_keys(self) -> List[str]:
        """Return every image key to process, in order."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
