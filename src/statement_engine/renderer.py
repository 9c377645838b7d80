"""Drawing surfaces: a recorded display list and its ReportLab PDF playback.

All surfaces use top-left page coordinates in points: ``y`` grows downward
from the top edge, and rectangles are addressed by their top-left corner.
The ReportLab surface flips these into PDF space when drawing.
"""

import io
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from reportlab.lib.colors import Color, black
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas


def text_width(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size)


def truncate_text(text: str, max_width: float, font_name: str, font_size: float) -> str:
    """Truncate text to fit within max_width, adding '...' if needed."""
    if not text:
        return text

    if text_width(text, font_name, font_size) <= max_width:
        return text

    ellipsis = "..."
    available_width = max_width - text_width(ellipsis, font_name, font_size)

    if available_width <= 0:
        return ellipsis[:1]  # Just return "." if no room

    # Start from full text and reduce
    for i in range(len(text), 0, -1):
        truncated = text[:i]
        if text_width(truncated, font_name, font_size) <= available_width:
            return truncated + ellipsis

    return ellipsis


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float  # Baseline
    text: str
    font_name: str
    font_size: float
    color: Color = black
    align: str = "left"  # "left", "center", "right" relative to x


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.5
    color: Color = black


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float  # Top edge
    width: float
    height: float
    stroke_color: Optional[Color] = black
    fill_color: Optional[Color] = None
    line_width: float = 0.5


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    data: bytes


@dataclass(frozen=True)
class LinkOp:
    x: float
    y: float
    width: float
    height: float
    url: str


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp, LinkOp]


class DrawingSurface:
    """Primitive drawing operations the layout pass emits."""

    page_width: float
    page_height: float

    def text(self, x: float, y: float, text: str, font_name: str, font_size: float,
             color: Color = black, align: str = "left") -> None:
        raise NotImplementedError

    def line(self, x1: float, y1: float, x2: float, y2: float,
             width: float = 0.5, color: Color = black) -> None:
        raise NotImplementedError

    def rect(self, x: float, y: float, width: float, height: float,
             stroke_color: Optional[Color] = black, fill_color: Optional[Color] = None,
             line_width: float = 0.5) -> None:
        raise NotImplementedError

    def image(self, x: float, y: float, width: float, height: float, data: bytes) -> None:
        raise NotImplementedError

    def link(self, x: float, y: float, width: float, height: float, url: str) -> None:
        raise NotImplementedError

    def page_break(self) -> None:
        raise NotImplementedError

    def output(self) -> bytes:
        raise NotImplementedError


class Document(DrawingSurface):
    """In-memory display list: one list of draw operations per page.

    The layout pass draws into a Document so that every page stays
    addressable until output; ``go_to_page`` lets a later pass add content
    (such as page-count footers) to pages already emitted.
    """

    def __init__(self, page_width: float, page_height: float, title: str = ""):
        self.page_width = page_width
        self.page_height = page_height
        self.title = title
        self.pages: List[List[DrawOp]] = [[]]
        self._current = 0

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def current_page(self) -> int:
        return self._current

    def go_to_page(self, index: int) -> None:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"Page {index} out of range (0..{len(self.pages) - 1})")
        self._current = index

    def _emit(self, op: DrawOp) -> None:
        self.pages[self._current].append(op)

    def text(self, x, y, text, font_name, font_size, color=black, align="left"):
        self._emit(TextOp(x, y, text, font_name, font_size, color, align))

    def line(self, x1, y1, x2, y2, width=0.5, color=black):
        self._emit(LineOp(x1, y1, x2, y2, width, color))

    def rect(self, x, y, width, height, stroke_color=black, fill_color=None, line_width=0.5):
        self._emit(RectOp(x, y, width, height, stroke_color, fill_color, line_width))

    def image(self, x, y, width, height, data):
        self._emit(ImageOp(x, y, width, height, data))

    def link(self, x, y, width, height, url):
        self._emit(LinkOp(x, y, width, height, url))

    def page_break(self):
        self.pages.append([])
        self._current = len(self.pages) - 1

    def ops(self, kind: type) -> List[Tuple[int, DrawOp]]:
        """All operations of one type as (page_index, op) pairs."""
        return [
            (page_index, op)
            for page_index, page in enumerate(self.pages)
            for op in page
            if isinstance(op, kind)
        ]

    def texts(self) -> List[str]:
        return [op.text for _, op in self.ops(TextOp)]

    def replay(self, surface: DrawingSurface) -> None:
        """Draw every recorded page onto another surface."""
        for page_index, page in enumerate(self.pages):
            if page_index > 0:
                surface.page_break()
            for op in page:
                if isinstance(op, TextOp):
                    surface.text(op.x, op.y, op.text, op.font_name, op.font_size, op.color, op.align)
                elif isinstance(op, LineOp):
                    surface.line(op.x1, op.y1, op.x2, op.y2, op.width, op.color)
                elif isinstance(op, RectOp):
                    surface.rect(op.x, op.y, op.width, op.height,
                                 op.stroke_color, op.fill_color, op.line_width)
                elif isinstance(op, ImageOp):
                    surface.image(op.x, op.y, op.width, op.height, op.data)
                elif isinstance(op, LinkOp):
                    surface.link(op.x, op.y, op.width, op.height, op.url)

    def output(self) -> bytes:
        surface = ReportLabSurface(self.page_width, self.page_height, title=self.title)
        self.replay(surface)
        return surface.output()


class ReportLabSurface(DrawingSurface):
    """Draws onto a ReportLab canvas and returns the PDF as bytes.

    The canvas runs in invariant mode, so identical drawing produces
    identical bytes (no creation timestamps or random document IDs).
    """

    def __init__(self, page_width: float, page_height: float, title: str = ""):
        self.page_width = page_width
        self.page_height = page_height
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(
            self._buffer, pagesize=(page_width, page_height), invariant=1
        )
        if title:
            self._canvas.setTitle(title)

    def _flip(self, y: float) -> float:
        return self.page_height - y

    def text(self, x, y, text, font_name, font_size, color=black, align="left"):
        c = self._canvas
        c.setFont(font_name, font_size)
        c.setFillColor(color)
        if align == "center":
            c.drawCentredString(x, self._flip(y), text)
        elif align == "right":
            c.drawRightString(x, self._flip(y), text)
        else:
            c.drawString(x, self._flip(y), text)

    def line(self, x1, y1, x2, y2, width=0.5, color=black):
        c = self._canvas
        c.setStrokeColor(color)
        c.setLineWidth(width)
        c.line(x1, self._flip(y1), x2, self._flip(y2))

    def rect(self, x, y, width, height, stroke_color=black, fill_color=None, line_width=0.5):
        c = self._canvas
        if stroke_color is not None:
            c.setStrokeColor(stroke_color)
            c.setLineWidth(line_width)
        if fill_color is not None:
            c.setFillColor(fill_color)
        c.rect(
            x, self._flip(y + height), width, height,
            stroke=1 if stroke_color is not None else 0,
            fill=1 if fill_color is not None else 0,
        )

    def image(self, x, y, width, height, data):
        reader = ImageReader(io.BytesIO(data))
        self._canvas.drawImage(reader, x, self._flip(y + height), width, height, mask="auto")

    def link(self, x, y, width, height, url):
        rect = (x, self._flip(y + height), x + width, self._flip(y))
        self._canvas.linkURL(url, rect, relative=0, thickness=0)

    def page_break(self):
        self._canvas.showPage()

    def output(self) -> bytes:
        self._canvas.save()
        return self._buffer.getvalue()
