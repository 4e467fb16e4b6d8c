"""
Asset models: target sizes, rendered outputs and per-source groups.

The two size catalogs are fixed at import time and shared by the extractor
pipeline and the manual formatter.
"""
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class AssetType(str, Enum):
    """Role of a source image in a store listing."""
    ICON = "ICON"
    SCREENSHOT = "SCREENSHOT"

    @property
    def file_prefix(self) -> str:
        """Prefix used when naming exported files."""
        return self.value.lower()


class ResizeSpec(BaseModel):
    """A target output size."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    label: str

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"


ICON_SPECS: Tuple[ResizeSpec, ...] = (
    ResizeSpec(width=114, height=114, label="Icon (114x114)"),
    ResizeSpec(width=512, height=512, label="Icon (512x512)"),
)

SCREENSHOT_SPECS: Tuple[ResizeSpec, ...] = (
    ResizeSpec(width=1280, height=720, label="Landscape (1280x720)"),
    ResizeSpec(width=720, height=1280, label="Portrait (720x1280)"),
)


class RenderedImage(BaseModel):
    """One PNG produced for one :class:`ResizeSpec`."""
    model_config = ConfigDict(frozen=True)

    spec: ResizeSpec
    pixel_data: bytes = Field(repr=False)

    def filename(self, prefix: str) -> str:
        """File name for this rendition, e.g. ``icon-512x512.png``."""
        return f"{prefix}-{self.spec.dimensions}.png"


class AssetGroup(BaseModel):
    """All renditions produced from one source image."""
    model_config = ConfigDict(frozen=True)

    original_url: str
    asset_type: AssetType
    rendered_images: List[RenderedImage] = Field(min_length=1)
