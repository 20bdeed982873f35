# src/images_optimizer/core/error_handling.py

import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from .exceptions import ImagesOptimizerError
from .observability import LogContext

F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(error_cls: Type[ImagesOptimizerError]) -> Callable[[F], F]:
    """
    Translate any failure of the wrapped function into ``error_cls``.

    Errors that already belong to the optimizer taxonomy pass through unchanged.
    S3 client errors and Pillow decode errors get a message naming their origin.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger(f"images-optimizer.{func.__name__}")
            try:
                return func(*args, **kwargs)
            except ImagesOptimizerError:
                raise
            except (ClientError, BotoCoreError) as e:
                logger.debug(f"S3 error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"S3 operation failed in {func.__name__}: {e}") from e
            except (UnidentifiedImageError, Image.DecompressionBombError) as e:
                logger.debug(f"Image error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"Failed to identify image in {func.__name__}: {e}") from e
            except Exception as e:  # noqa: BLE001
                logger.debug(f"Error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"{type(e).__name__} in {func.__name__}: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


class StageErrorCollector:
    """
    Context manager for one pipeline stage to collect and summarize per-key errors.
    """

    def __init__(self, stage_name: str, logger: Any, context: Optional[LogContext] = None):
        self.stage_name = stage_name
        self.errors: List[Dict[str, str]] = []
        self._logger = logger
        self._context = (context or LogContext(component="orchestrator")).with_operation(
            stage_name
        )

    def __enter__(self) -> "StageErrorCollector":
        self._logger.debug(f"Starting {self.stage_name} stage", self._context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type:
            self._logger.error(
                f"{self.stage_name} stage aborted by an unhandled exception: {exc_val}",
                self._context,
            )
        elif self.errors:
            self._logger.warning(
                f"{self.stage_name} stage completed with {len(self.errors)} error(s)",
                self._context,
                failed_keys=",".join(e["item"] for e in self.errors),
            )
        else:
            self._logger.info(f"{self.stage_name} stage completed successfully", self._context)

        # Never suppress; per-key errors are reported through add_error
        return False

    def add_error(self, error_message: str, item_identifier: str) -> None:
        """
        Record and log the failure of one key within this stage.

        Args:
            error_message: The error message or exception string.
            item_identifier: The key that failed.
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self._logger.error(
            f"Error processing {item_identifier} in {self.stage_name} stage: {error_message}",
            self._context.with_metadata(key=item_identifier),
        )
