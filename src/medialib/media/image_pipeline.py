"""Image transformation pipeline: resize, crop, watermark, encode."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from PIL import Image, ImageOps, UnidentifiedImageError

from ..exceptions import MediaValidationError, ThumbnailDerivationError
from ..settings import (
    AnchorPosition,
    CropConfig,
    ImageTransformConfig,
    ResizeConfig,
    ThumbnailConfig,
    WatermarkConfig,
)
from .media_types import normalize_extension

logger = logging.getLogger(__name__)

DEFAULT_ENCODE_EXTENSION = "jpg"

# extension -> (Pillow format, canonical extension)
ENCODE_FORMATS: dict[str, tuple[str, str]] = {
    "jpg": ("JPEG", "jpg"),
    "jpeg": ("JPEG", "jpg"),
    "png": ("PNG", "png"),
    "webp": ("WEBP", "webp"),
}
LOSSLESS_FORMATS = frozenset({"PNG"})

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


@dataclass(slots=True)
class TransformResult:
    """Encoded output of the pipeline."""

    data: bytes
    extension: str
    transformed: bool
    width: int | None = None
    height: int | None = None
    steps: list[str] = field(default_factory=list)


def anchor_offset(
    position: AnchorPosition | str,
    container: tuple[int, int],
    item: tuple[int, int],
    margin: int = 0,
) -> tuple[int, int]:
    """Top-left pixel offset of ``item`` anchored inside ``container``.

    Margin applies on the anchored edges only; a centered axis ignores it.
    Unknown positions behave like ``bottom-right``.
    """
    parts = set(str(position).split("-"))
    if position not in {
        "top-left", "top", "top-right", "left", "center",
        "right", "bottom-left", "bottom", "bottom-right",
    }:
        parts = {"bottom", "right"}
    container_w, container_h = container
    item_w, item_h = item

    if "left" in parts:
        x = margin
    elif "right" in parts:
        x = container_w - item_w - margin
    else:
        x = (container_w - item_w) // 2

    if "top" in parts:
        y = margin
    elif "bottom" in parts:
        y = container_h - item_h - margin
    else:
        y = (container_h - item_h) // 2
    return x, y


def resize_dimensions(
    source: tuple[int, int],
    width: int | None,
    height: int | None,
    *,
    maintain_aspect_ratio: bool = True,
    upscale: bool = False,
) -> tuple[int, int]:
    """Compute the output size for a resize request."""
    source_w, source_h = source
    if not upscale:
        if width and source_w < width:
            width = source_w
        if height and source_h < height:
            height = source_h

    if not width and not height:
        return source_w, source_h

    if not maintain_aspect_ratio:
        return width or source_w, height or source_h

    factors = []
    if width:
        factors.append(width / source_w)
    if height:
        factors.append(height / source_h)
    factor = min(factors)
    return max(1, round(source_w * factor)), max(1, round(source_h * factor))


def apply_resize(image: Image.Image, config: ResizeConfig) -> Image.Image:
    size = resize_dimensions(
        image.size,
        config.width,
        config.height,
        maintain_aspect_ratio=config.maintain_aspect_ratio,
        upscale=config.upscale,
    )
    if size == image.size:
        return image
    return image.resize(size, Image.Resampling.LANCZOS)


def apply_crop(image: Image.Image, config: CropConfig) -> Image.Image:
    image_w, image_h = image.size
    width = min(config.width, image_w)
    height = min(config.height, image_h)
    x, y = anchor_offset(config.position, image.size, (width, height))
    x = min(max(x, 0), image_w - width)
    y = min(max(y, 0), image_h - height)
    return image.crop((x, y, x + width, y + height))


def apply_watermark(image: Image.Image, config: WatermarkConfig) -> Image.Image:
    path = config.path
    if path is None or not path.is_file():
        logger.warning(
            "media.image.watermark_missing",
            extra={"path": str(path) if path else None},
        )
        return image

    try:
        with Image.open(path) as source:
            overlay = source.convert("RGBA")
    except _DECODE_ERRORS as exc:
        logger.warning(
            "media.image.watermark_missing",
            extra={"path": str(path), "error": str(exc)},
        )
        return image
    if config.opacity < 100:
        alpha = overlay.getchannel("A").point(lambda value: round(value * config.opacity / 100))
        overlay.putalpha(alpha)

    base = image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    offset = anchor_offset(config.position, base.size, overlay.size, config.margin)
    layer.paste(overlay, offset)
    return Image.alpha_composite(base, layer)


def _flatten(image: Image.Image) -> Image.Image:
    """Drop alpha onto a white background for formats without transparency."""
    if image.mode in ("RGB", "L"):
        return image
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def resolve_format(requested: str | None, source_extension: str | None) -> tuple[str, str]:
    """Return ``(pillow_format, extension)`` for the requested output format.

    Falls back to the source format when it is encodable, then to JPEG.
    """
    for candidate in (requested, source_extension):
        key = normalize_extension(candidate)
        if key in ENCODE_FORMATS:
            return ENCODE_FORMATS[key]
        if candidate and requested and candidate == requested:
            logger.warning("media.image.unknown_format", extra={"format": requested})
            break
    return ENCODE_FORMATS[DEFAULT_ENCODE_EXTENSION]


def encode_image(image: Image.Image, pillow_format: str, quality: int) -> bytes:
    buffer = io.BytesIO()
    if pillow_format == "JPEG":
        _flatten(image).save(buffer, format="JPEG", quality=quality, optimize=True)
    elif pillow_format == "WEBP":
        converted = image if image.mode in ("RGB", "RGBA") else image.convert("RGBA")
        converted.save(buffer, format="WEBP", quality=quality)
    else:
        # Lossless: quality does not apply.
        converted = image if image.mode in ("RGB", "RGBA", "L", "LA", "P") else image.convert("RGBA")
        converted.save(buffer, format=pillow_format, optimize=True)
    return buffer.getvalue()


def decode_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return ImageOps.exif_transpose(image) or image


class ImageTransformPipeline:
    """Apply the configured transforms to in-memory image bytes."""

    def transform(
        self,
        data: bytes,
        config: ImageTransformConfig,
        *,
        source_extension: str | None = None,
    ) -> TransformResult:
        """Run resize, crop and watermark in order, then encode.

        Returns the original bytes untouched when ``config.enabled`` is false.

        Raises:
            MediaValidationError: ``data`` is not a decodable image.
        """
        if not config.enabled:
            return TransformResult(
                data=data,
                extension=normalize_extension(source_extension),
                transformed=False,
            )

        try:
            image = decode_image(data)
        except _DECODE_ERRORS as exc:
            raise MediaValidationError(
                f"payload is not a valid image: {exc}",
                field="file",
                extension=normalize_extension(source_extension),
            ) from exc

        steps: list[str] = []
        if config.resize.enabled:
            image = apply_resize(image, config.resize)
            steps.append("resize")
        if config.crop.enabled:
            image = apply_crop(image, config.crop)
            steps.append("crop")
        if config.watermark.enabled and config.watermark.path:
            image = apply_watermark(image, config.watermark)
            steps.append("watermark")

        pillow_format, extension = resolve_format(config.format, source_extension)
        encoded = encode_image(image, pillow_format, config.quality)
        steps.append("encode")
        logger.debug(
            "media.image.transformed",
            extra={"steps": steps, "format": pillow_format, "size": image.size},
        )
        return TransformResult(
            data=encoded,
            extension=extension,
            transformed=True,
            width=image.size[0],
            height=image.size[1],
            steps=steps,
        )

    def render_thumbnail(self, data: bytes, config: ThumbnailConfig | None) -> TransformResult:
        """Resize and encode a thumbnail from primary image bytes.

        Raises:
            ThumbnailDerivationError: missing config or undecodable input.
        """
        if config is None:
            raise ThumbnailDerivationError("thumbnail configuration is missing")
        try:
            image = decode_image(data)
            image = apply_resize(image, config.resize)
            pillow_format, extension = resolve_format(config.format, None)
            encoded = encode_image(image, pillow_format, config.quality)
        except _DECODE_ERRORS as exc:
            raise ThumbnailDerivationError(f"thumbnail rendering failed: {exc}") from exc
        return TransformResult(
            data=encoded,
            extension=extension,
            transformed=True,
            width=image.size[0],
            height=image.size[1],
            steps=["resize", "encode"],
        )
