"""Image processing utilities for the images optimizer."""

from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image

from .models import ImageInfo

# Probe order of the cache resolver. Every extension produced by
# format_to_extension is in this list.
CANDIDATE_EXTENSIONS: Tuple[str, ...] = (
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".gif",
    ".tiff",
    ".avif",
)

DEFAULT_EXTENSION = ".jpg"
TEMP_SUFFIX = ".tmp"

_FORMAT_EXTENSIONS: Dict[str, str] = {
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "mpo": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "gif": ".gif",
    "tiff": ".tiff",
    "avif": ".avif",
}

_CONTENT_TYPES: Dict[str, str] = {
    "webp": "image/webp",
    "png": "image/png",
    "jpeg": "image/jpeg",
}

_PIL_FORMATS: Dict[str, str] = {
    "webp": "WEBP",
    "png": "PNG",
    "jpeg": "JPEG",
}


def format_to_extension(image_format: Optional[str]) -> str:
    """
    Map a decoded image format name to the cache file extension.

    The mapping is total: "jpeg" (and the JPEG variant "mpo") become ".jpg",
    the other recognized formats keep their own name, and an absent or
    unrecognized format falls back to ".jpg".

    Args:
        image_format: Format name as reported by the decoder, any case, or None

    Returns:
        Extension including the leading dot
    """
    if not image_format:
        return DEFAULT_EXTENSION
    return _FORMAT_EXTENSIONS.get(image_format.lower(), DEFAULT_EXTENSION)


def content_type_for_format(target_format: str) -> str:
    """Return the MIME type of a target format."""
    try:
        return _CONTENT_TYPES[target_format.lower()]
    except KeyError:
        raise ValueError(f"Unsupported target format: {target_format}") from None


def plan_resize(width: int, height: int, threshold: int) -> Optional[Tuple[int, int]]:
    """
    Decide the output size of an image.

    Only the width drives the decision: an image wider than ``threshold`` is
    scaled to exactly ``threshold`` pixels wide with its aspect ratio kept.

    Returns:
        The (width, height) to resize to, or None to keep the original size
    """
    if width <= threshold:
        return None
    new_height = max(1, round(height * threshold / width))
    return threshold, new_height


def local_path_for(root: Path, key: str, suffix: str) -> Path:
    """
    Build ``<root>/<key><suffix>`` for an object key.

    Raises:
        ValueError: If the key is empty, absolute or contains empty, "." or ".."
            segments, any of which could place the file outside ``root``
    """
    parts = key.split("/")
    if (
        not key
        or "\\" in key
        or "\x00" in key
        or any(part in ("", ".", "..") for part in parts)
    ):
        raise ValueError(f"Unsafe object key: {key!r}")
    return Path(root) / f"{key}{suffix}"


def _prepare_mode(image: "Image.Image", pil_format: str) -> "Image.Image":
    """Convert the image to a mode the target codec can store."""
    if pil_format == "JPEG":
        if image.mode in ("RGB", "L"):
            return image
        return image.convert("RGB")

    if image.mode in ("RGB", "RGBA"):
        return image
    has_alpha = image.mode in ("LA", "La", "PA", "RGBa") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


class PillowImageEngine:
    """Image decode/resize/encode capability backed by Pillow."""

    def probe(self, path: Path) -> ImageInfo:
        """Read format and dimensions without decoding the pixel data."""
        with Image.open(path) as image:
            return ImageInfo(
                format=image.format.lower() if image.format else None,
                width=image.width,
                height=image.height,
            )

    def convert(
        self,
        source: Path,
        dest: Path,
        target_format: str,
        size: Optional[Tuple[int, int]] = None,
        quality: int = 80,
    ) -> ImageInfo:
        """
        Encode ``source`` into ``dest`` in ``target_format``.

        Only the first frame of animated images is kept. When ``size`` is given
        the image is resampled with Lanczos filtering first.
        """
        pil_format = _PIL_FORMATS.get(target_format.lower())
        if pil_format is None:
            raise ValueError(f"Unsupported target format: {target_format}")

        with Image.open(source) as image:
            prepared = _prepare_mode(image, pil_format)
            if size is not None:
                prepared = prepared.resize(size, Image.Resampling.LANCZOS)

            Path(dest).parent.mkdir(parents=True, exist_ok=True)
            prepared.save(dest, format=pil_format, quality=quality)

            return ImageInfo(
                format=target_format.lower(),
                width=prepared.width,
                height=prepared.height,
            )
