"""
Image compositing for store assets.

Renders a decoded source image into each requested size:

- Icons are scaled to fit ("contain") and centered on a transparent canvas.
- Screenshots get a dark canvas, a blurred and darkened copy of the source
  scaled to fill it ("cover") as backdrop, and the source scaled to fit on
  top with a drop shadow. This gives any target aspect ratio without
  cropping the screenshot or leaving flat letterbox bars.

All outputs are PNG.
"""
import io
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import structlog
from PIL import Image, ImageColor, ImageEnhance, ImageFilter, UnidentifiedImageError

from storeassets.config import CompositorConfig
from storeassets.errors import ImageDecodeError, RenderFailure, SourceTooSmall
from storeassets.models.asset import (
    ICON_SPECS,
    SCREENSHOT_SPECS,
    AssetType,
    RenderedImage,
    ResizeSpec,
)

# Set up structured logger
logger = structlog.get_logger()

RESAMPLE = Image.Resampling.LANCZOS

Box = Tuple[int, int, int, int]  # x, y, width, height


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into an RGBA image.

    Raises:
        ImageDecodeError: If the payload is not a readable image
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e
    return image.convert("RGBA")


def min_source_size(asset_type: AssetType, config: CompositorConfig) -> int:
    """Smallest accepted source edge for ``asset_type``."""
    if asset_type == AssetType.ICON:
        return config.icon_min_size
    return config.screenshot_min_size


def check_source_size(image: Image.Image, asset_type: AssetType, config: CompositorConfig) -> None:
    """
    Reject tracking pixels and placeholder thumbnails.

    Raises:
        SourceTooSmall: If either edge is below the floor for ``asset_type``
    """
    floor = min_source_size(asset_type, config)
    width, height = image.size
    if width < floor or height < floor:
        raise SourceTooSmall(width, height, floor)


def _scaled_box(src: Tuple[int, int], dst: Tuple[int, int], scale: float) -> Box:
    width = max(1, round(src[0] * scale))
    height = max(1, round(src[1] * scale))
    x = round((dst[0] - width) / 2)
    y = round((dst[1] - height) / 2)
    return x, y, width, height


def contain_box(src: Tuple[int, int], dst: Tuple[int, int]) -> Box:
    """Centered box that fits ``src`` entirely inside ``dst``."""
    scale = min(dst[0] / src[0], dst[1] / src[1])
    return _scaled_box(src, dst, scale)


def cover_box(src: Tuple[int, int], dst: Tuple[int, int]) -> Box:
    """Centered box that scales ``src`` to fill all of ``dst``."""
    scale = max(dst[0] / src[0], dst[1] / src[1])
    return _scaled_box(src, dst, scale)


def draw_contained(source: Image.Image, spec: ResizeSpec) -> Image.Image:
    """Contain layout on a transparent canvas."""
    canvas = Image.new("RGBA", (spec.width, spec.height), (0, 0, 0, 0))
    x, y, width, height = contain_box(source.size, (spec.width, spec.height))
    canvas.alpha_composite(source.resize((width, height), RESAMPLE), dest=(x, y))
    return canvas


def draw_icon(source: Image.Image, spec: ResizeSpec, config: CompositorConfig) -> Image.Image:
    """Icon layout: contain, centered, transparent padding."""
    return draw_contained(source, spec)


def draw_screenshot(source: Image.Image, spec: ResizeSpec, config: CompositorConfig) -> Image.Image:
    """Screenshot layout: blurred cover backdrop plus contained foreground with shadow."""
    size = (spec.width, spec.height)
    background = ImageColor.getrgb(config.background_color)[:3] + (255,)
    canvas = Image.new("RGBA", size, background)

    # Backdrop, grown past the canvas edges so the blur has no soft border
    flat = Image.new("RGBA", source.size, background)
    flat.alpha_composite(source)
    x, y, width, height = cover_box(source.size, size)
    bleed = config.backdrop_bleed
    backdrop = flat.convert("RGB").resize((width + 2 * bleed, height + 2 * bleed), RESAMPLE)
    backdrop = backdrop.filter(ImageFilter.GaussianBlur(config.backdrop_blur))
    backdrop = ImageEnhance.Brightness(backdrop).enhance(config.backdrop_brightness)
    canvas.paste(backdrop, (x - bleed, y - bleed))

    # Foreground and its shadow
    x, y, width, height = contain_box(source.size, size)
    foreground = source.resize((width, height), RESAMPLE)

    opacity = config.shadow_opacity
    shadow_alpha = Image.new("L", size, 0)
    shadow_alpha.paste(
        foreground.getchannel("A").point(lambda a: int(a * opacity)),
        (x, y + config.shadow_offset_y),
    )
    # Canvas-style shadow blur is twice the Gaussian sigma
    shadow_alpha = shadow_alpha.filter(ImageFilter.GaussianBlur(config.shadow_blur / 2))
    shadow = Image.new("RGBA", size, (0, 0, 0, 0))
    shadow.putalpha(shadow_alpha)
    canvas.alpha_composite(shadow)

    canvas.alpha_composite(foreground, dest=(x, y))
    return canvas.convert("RGB")


LAYOUTS: Dict[AssetType, Callable[[Image.Image, ResizeSpec, CompositorConfig], Image.Image]] = {
    AssetType.ICON: draw_icon,
    AssetType.SCREENSHOT: draw_screenshot,
}


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def _render_one(
    source: Image.Image,
    asset_type: AssetType,
    spec: ResizeSpec,
    config: CompositorConfig,
) -> RenderedImage:
    try:
        canvas = LAYOUTS[asset_type](source, spec, config)
        return RenderedImage(spec=spec, pixel_data=encode_png(canvas))
    except Exception as e:
        raise RenderFailure(f"Failed to render {spec.label}: {e}") from e


def render(
    source: Image.Image,
    asset_type: AssetType,
    specs: Sequence[ResizeSpec],
    config: Optional[CompositorConfig] = None,
) -> List[RenderedImage]:
    """
    Render ``source`` into every target size using the layout for ``asset_type``.

    Sources below the size floor produce an empty list. A size that fails
    to render is skipped and the remaining specs are still rendered.

    Args:
        source: Decoded source image
        asset_type: ICON or SCREENSHOT
        specs: Target sizes in order
        config: Compositor configuration

    Returns:
        List[RenderedImage]: One PNG per successfully rendered size
    """
    config = config or CompositorConfig()
    source = source.convert("RGBA")

    try:
        check_source_size(source, asset_type, config)
    except SourceTooSmall as e:
        logger.warning("Discarding source image", asset_type=asset_type.value, reason=str(e))
        return []

    rendered = []
    for spec in specs:
        try:
            rendered.append(_render_one(source, asset_type, spec, config))
        except RenderFailure as e:
            logger.warning("Skipping output size", asset_type=asset_type.value, error=str(e))

    logger.debug(
        "Source image rendered",
        asset_type=asset_type.value,
        source_size=f"{source.width}x{source.height}",
        outputs=len(rendered),
    )
    return rendered


def render_bytes(
    data: bytes,
    asset_type: AssetType,
    specs: Sequence[ResizeSpec],
    config: Optional[CompositorConfig] = None,
) -> List[RenderedImage]:
    """
    Decode ``data`` and render it.

    Raises:
        ImageDecodeError: If the payload is not a readable image
    """
    return render(decode_image(data), asset_type, specs, config)


def format_image(
    data: bytes,
    specs: Optional[Sequence[ResizeSpec]] = None,
) -> List[RenderedImage]:
    """
    Manual formatter: fit one user-supplied image into every catalog size.

    Every size gets the plain contain layout on a transparent canvas. No
    size floor is applied since the user chose the image.

    Raises:
        ImageDecodeError: If the payload is not a readable image
    """
    source = decode_image(data)
    specs = specs if specs is not None else (*ICON_SPECS, *SCREENSHOT_SPECS)

    rendered = []
    for spec in specs:
        try:
            rendered.append(RenderedImage(spec=spec, pixel_data=encode_png(draw_contained(source, spec))))
        except Exception as e:
            logger.warning("Skipping output size", spec=spec.label, error=str(e))
    return rendered
