"""
Frame preview module for the FrameCraft storefront.

This module handles:
- Drawing the selected frame asset onto a preview canvas
- Rotating the frame for portrait photos
- Drawing a plain coloured frame when no asset is available
- Placing the customer's photo inside the frame opening
"""

import io
from dataclasses import dataclass
from typing import Optional, Tuple
from PIL import Image, ImageColor
from loguru import logger

from .errors import RenderError


@dataclass
class PhotoPosition:
    """Offset (px), scale and rotation (degrees) of the photo in the opening"""
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0


class PreviewSettings:
    """Settings for preview rendering"""

    def __init__(self,
                 width: int = 400,
                 height: int = 300,
                 border_px: int = 20,
                 matting_px: int = 12,
                 background_color: str = "#f5f5f5"):
        self.width = width
        self.height = height
        self.border_px = border_px
        self.matting_px = matting_px
        self.background_color = background_color

    @classmethod
    def from_config(cls, config) -> "PreviewSettings":
        """Build settings from a Flask config mapping"""
        return cls(
            width=config.get('PREVIEW_WIDTH', 400),
            height=config.get('PREVIEW_HEIGHT', 300),
            border_px=config.get('PREVIEW_BORDER_PX', 20),
            background_color=config.get('PREVIEW_BACKGROUND', '#f5f5f5'),
        )

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def opening_box(self, matted: bool = False) -> Tuple[int, int, int, int]:
        inset = self.border_px + (self.matting_px if matted else 0)
        return (inset, inset, self.width - inset, self.height - inset)


def parse_color(value: Optional[str], default: str = "black") -> Tuple[int, int, int]:
    """Resolve a CSS colour name or hex code, falling back to the default"""
    if value:
        try:
            return ImageColor.getrgb(value)[:3]
        except ValueError:
            logger.warning(f"Unknown frame colour {value!r}, using {default}")
    return ImageColor.getrgb(default)[:3]


class FramePreviewRenderer:
    """Composites a customer photo into a frame preview"""

    def __init__(self, settings: PreviewSettings = None):
        self.settings = settings or PreviewSettings()

    def create_canvas(self) -> Image.Image:
        background = parse_color(self.settings.background_color, "white")
        return Image.new('RGBA', self.settings.canvas_size, background + (255,))

    def draw_frame_asset(self, canvas: Image.Image, frame_image: Image.Image, needs_rotation: bool) -> None:
        width, height = self.settings.canvas_size

        if needs_rotation:
            # Stretch to the swapped size, then turn clockwise onto the canvas
            frame = frame_image.convert('RGBA').resize((height, width), Image.Resampling.LANCZOS)
            frame = frame.transpose(Image.Transpose.ROTATE_270)
        else:
            frame = frame_image.convert('RGBA').resize((width, height), Image.Resampling.LANCZOS)

        canvas.alpha_composite(frame)

    def draw_plain_frame(self, canvas: Image.Image, frame_color: str, matting_color: str = None) -> None:
        width, height = self.settings.canvas_size

        canvas.paste(parse_color(frame_color) + (255,), (0, 0, width, height))

        if matting_color:
            canvas.paste(parse_color(matting_color, "white") + (255,), self.settings.opening_box())

        canvas.paste((255, 255, 255, 255), self.settings.opening_box(matted=bool(matting_color)))

    def draw_photo(self, canvas: Image.Image, photo: Image.Image, position: PhotoPosition,
                   matted: bool = False) -> None:
        """Draw the photo centred in the opening, clipped to the opening"""
        left, top, right, bottom = self.settings.opening_box(matted)
        opening_w, opening_h = right - left, bottom - top
        if opening_w <= 0 or opening_h <= 0:
            raise RenderError("Preview border leaves no room for the photo",
                              details={'canvas_size': self.settings.canvas_size,
                                       'border_px': self.settings.border_px})

        layer = photo.convert('RGBA')
        if position.scale != 1.0:
            scaled = (max(1, round(layer.width * position.scale)), max(1, round(layer.height * position.scale)))
            layer = layer.resize(scaled, Image.Resampling.LANCZOS)
        if position.rotation:
            # PIL rotates counter-clockwise; positive degrees turn the photo clockwise
            layer = layer.rotate(-position.rotation, resample=Image.Resampling.BICUBIC, expand=True)

        opening = Image.new('RGBA', (opening_w, opening_h), (0, 0, 0, 0))
        offset_x = round(opening_w / 2 + position.x - layer.width / 2)
        offset_y = round(opening_h / 2 + position.y - layer.height / 2)
        opening.paste(layer, (offset_x, offset_y), layer)

        canvas.alpha_composite(opening, (left, top))

    def render(self,
               photo: Optional[Image.Image],
               frame_image: Optional[Image.Image] = None,
               needs_rotation: bool = False,
               frame_color: str = "black",
               matting_color: str = None,
               position: PhotoPosition = None) -> Image.Image:
        """
        Render a frame preview

        Args:
            photo: Customer photo, or None for an empty frame
            frame_image: Loaded frame asset; a plain frame is drawn when None
            needs_rotation: Rotate the frame asset for portrait photos
            frame_color: Colour of the plain frame
            matting_color: Optional matting colour for the plain frame
            position: Photo offset, scale and rotation

        Returns:
            RGB preview image
        """
        position = position or PhotoPosition()

        try:
            canvas = self.create_canvas()

            if frame_image is not None:
                self.draw_frame_asset(canvas, frame_image, needs_rotation)
            else:
                self.draw_plain_frame(canvas, frame_color, matting_color)

            if photo is not None:
                self.draw_photo(canvas, photo, position, matted=frame_image is None and bool(matting_color))
        except RenderError:
            raise
        except (OSError, ValueError, OverflowError) as e:
            logger.error(f"Failed to render frame preview: {e}")
            raise RenderError(f"Failed to render frame preview: {e}")

        logger.debug(f"Rendered preview {self.settings.canvas_size} "
                     f"(asset={'yes' if frame_image is not None else 'no'}, rotated={needs_rotation})")
        return canvas.convert('RGB')


def render_to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='PNG', optimize=True)
    return buffer.getvalue()
