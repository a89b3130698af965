"""Canvas composition and PNG encoding for a single render request."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from PIL import Image

from .errors import EncodeFailure
from .glyphs import GlyphRenderer
from .models import BoundingBox, RenderRequest

CONTENT_TYPE = "image/png"


class ImageComposer:
    """Allocates the canvas, fills the background and draws text through a GlyphRenderer."""

    def __init__(self, glyphs: GlyphRenderer) -> None:
        self.glyphs = glyphs

    def measure(self, request: RenderRequest, font_path: Path, text: str | None = None) -> BoundingBox:
        return self.glyphs.measure(font_path, request.font_size, request.angle, request.text if text is None else text)

    @staticmethod
    def canvas_size(request: RenderRequest, bbox: BoundingBox) -> tuple[int, int]:
        if request.max_width is not None and request.max_height is not None:
            width, height = request.max_width, request.max_height
        else:
            width = request.max_width if request.max_width is not None else bbox.width
            height = request.max_height if request.max_height is not None else bbox.height
        return max(1, width), max(1, height)

    def compose(
        self,
        request: RenderRequest,
        font_path: Path,
        bbox: BoundingBox,
        text: str | None = None,
    ) -> Image.Image:
        size = self.canvas_size(request, bbox)
        if request.transparent:
            # Plain allocation writes the fill verbatim, nothing is blended.
            image = Image.new("RGBA", size, (255, 255, 255, 0))
        else:
            image = Image.new("RGB", size, request.background_colour)

        self.glyphs.rasterize(
            image,
            font_path,
            request.font_size,
            request.angle,
            0,
            request.baseline,
            request.text_colour,
            request.text if text is None else text,
        )
        return image

    @staticmethod
    def encode(image: Image.Image) -> bytes:
        buf = BytesIO()
        try:
            image.save(buf, format="PNG")
        except (OSError, ValueError) as exc:
            raise EncodeFailure(f"Could not encode the final image: {exc}") from exc
        return buf.getvalue()
