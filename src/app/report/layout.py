import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple, Union

import fitz  # PyMuPDF

from app.report.document import Document, ImageBlock, TextBlock
from app.report.exceptions import ReportGenerationError
from app.report.formatting import format_date
from app.report.images import FetchedImage
from app.utils.image import fit_within

logger = logging.getLogger(__name__)

# All layout is done in millimetres, y grows downwards from the top edge.
PT_TO_MM = 25.4 / 72
# Screen pixels are placed at 96 DPI.
PX_TO_MM = 0.2646
# Line height in mm per point of font size (12pt -> 4.8mm). Page-break prediction
# depends on this value; rendering uses the same factor so predicted and drawn
# heights never diverge.
LINE_HEIGHT_FACTOR = 0.4

PARAGRAPH_GAP = 5.0
IMAGE_GAP = 5.0
MAX_IMAGE_HEIGHT_MM = 100.0
# Minimum lines of a flowing paragraph left at the bottom of a page.
MIN_ORPHAN_LINES = 2

FOOTER_SIZE = 8
FOOTER_BASELINE_OFFSET = 10.0

IMAGE_PLACEHOLDER = "[Imagen no disponible"
PLACEHOLDER_SIZE = 10

FONT_NAMES = {
    "normal": "helv",
    "bold": "hebo",
    "italic": "heit",
    "bolditalic": "hebi",
}

_EPS = 1e-6


@dataclass(frozen=True)
class PageGeometry:
    """A4 portrait with 20mm margins."""

    width: float = 210.0
    height: float = 297.0
    margin_top: float = 20.0
    margin_bottom: float = 20.0
    margin_left: float = 20.0
    margin_right: float = 20.0

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def bottom(self) -> float:
        """Lowest y any content block may reach."""
        return self.height - self.margin_bottom

    @property
    def usable_height(self) -> float:
        return self.bottom - self.margin_top


# --- Content items (input of the engine) ---


@dataclass(frozen=True)
class TextItem:
    text: str
    size: float = 12
    style: str = "normal"
    # Headings: never split, and moved to the next page together with the start of what follows.
    keep_with_next: bool = False
    splittable: bool = True


@dataclass(frozen=True)
class SpaceItem:
    height: float


@dataclass(frozen=True)
class EnsureSpaceItem:
    """Start a new page unless at least ``height`` mm remain on the current one."""

    height: float


@dataclass(frozen=True)
class ImageItem:
    resource_id: Optional[int]
    file_path: Optional[str]
    image: Optional[FetchedImage] = None
    error: Optional[str] = None


ContentItem = Union[TextItem, SpaceItem, EnsureSpaceItem, ImageItem]


@dataclass(frozen=True)
class LayoutState:
    page_index: int
    cursor_y: float


# --- Text measurement and wrapping ---

# (text, font size in pt, style) -> width in mm
Measure = Callable[[str, float, str], float]


def measure_text(text: str, size: float, style: str = "normal") -> float:
    return fitz.get_text_length(text, fontname=FONT_NAMES[style], fontsize=size) * PT_TO_MM


def line_height(size: float) -> float:
    return size * LINE_HEIGHT_FACTOR


def _split_long_word(word: str, size: float, style: str, max_width: float, measure: Measure) -> List[str]:
    chunks = []
    current = ""
    for char in word:
        if current and measure(current + char, size, style) > max_width:
            chunks.append(current)
            current = char
        else:
            current += char
    chunks.append(current)
    return chunks


def wrap_text(
    text: str,
    size: float,
    style: str = "normal",
    max_width: float = PageGeometry().content_width,
    measure: Measure = measure_text,
) -> List[str]:
    """
    Break ``text`` into lines no wider than ``max_width`` mm.

    Wraps at whitespace and keeps explicit newlines. A single word wider than the
    line is split between characters.
    """
    lines: List[str] = []
    for paragraph in text.replace("\r\n", "\n").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if measure(candidate, size, style) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
            if measure(word, size, style) > max_width:
                chunks = _split_long_word(word, size, style, max_width, measure)
                lines.extend(chunks[:-1])
                current = chunks[-1]
            else:
                current = word
        lines.append(current)
    return lines


# --- Engine ---


class LayoutEngine:
    """
    Places content items onto fixed-size pages.

    Every placement checks the remaining space first and only then commits the
    block, so no block ever ends below ``geometry.bottom``. Text may flow across
    a page break line by line; images and headings never split.
    """

    def __init__(self, geometry: PageGeometry = PageGeometry(), measure: Measure = measure_text):
        self.geometry = geometry
        self.measure = measure

    def layout(self, items: Sequence[ContentItem], title: str = "") -> Document:
        document = Document(page_width=self.geometry.width, page_height=self.geometry.height, title=title)
        document.add_page()
        state = LayoutState(page_index=0, cursor_y=self.geometry.margin_top)

        for index, item in enumerate(items):
            lookahead = 0.0
            if isinstance(item, TextItem) and item.keep_with_next:
                lookahead = self._lead_height(items, index + 1)
            state = self.place(document, state, item, lookahead)

        logger.debug(f"Laid out {len(items)} items on {document.page_count} page(s)")
        return document

    def place(self, document: Document, state: LayoutState, item: ContentItem, lookahead: float = 0.0) -> LayoutState:
        if isinstance(item, TextItem):
            return self._place_text(document, state, item, lookahead)
        if isinstance(item, ImageItem):
            return self._place_image(document, state, item)
        if isinstance(item, SpaceItem):
            return self._advance(state, item.height)
        if isinstance(item, EnsureSpaceItem):
            return self._ensure_space(document, state, item.height)
        raise TypeError(f"Unknown content item: {item!r}")

    def image_size(self, image: FetchedImage) -> Tuple[float, float]:
        """Placed size in mm: pixels at 96 DPI, then width clamp, then height clamp."""
        max_height = min(MAX_IMAGE_HEIGHT_MM, self.geometry.usable_height)
        return fit_within(image.width * PX_TO_MM, image.height * PX_TO_MM, self.geometry.content_width, max_height)

    def stamp_footers(self, document: Document, generated_on: date) -> Document:
        """
        Write "Generado el" and "Página i de N" on every page.

        Runs after layout, once the final page count N is known. Calling it again
        replaces the previous footers.
        """
        g = self.geometry
        total = document.page_count
        lh = line_height(FOOTER_SIZE)
        y = g.height - FOOTER_BASELINE_OFFSET - lh
        generated = f"Generado el: {format_date(generated_on)}"

        for page in document.pages:
            numbering = f"Página {page.number} de {total}"
            numbering_x = g.width - g.margin_right - self.measure(numbering, FOOTER_SIZE, "normal")
            page.footer = [
                TextBlock([generated], FOOTER_SIZE, "normal", g.margin_left, y, lh),
                TextBlock([numbering], FOOTER_SIZE, "normal", numbering_x, y, lh),
            ]
        return document

    # -- placement helpers --

    def _fits(self, state: LayoutState, height: float) -> bool:
        return state.cursor_y + height <= self.geometry.bottom + _EPS

    def _at_page_top(self, state: LayoutState) -> bool:
        return state.cursor_y <= self.geometry.margin_top + _EPS

    def _new_page(self, document: Document, state: LayoutState) -> LayoutState:
        document.add_page()
        return LayoutState(page_index=state.page_index + 1, cursor_y=self.geometry.margin_top)

    def _ensure_space(self, document: Document, state: LayoutState, height: float) -> LayoutState:
        # A fresh page is as good as it gets; breaking again would only add blank pages.
        if self._fits(state, height) or self._at_page_top(state):
            return state
        return self._new_page(document, state)

    def _advance(self, state: LayoutState, height: float) -> LayoutState:
        return LayoutState(state.page_index, min(state.cursor_y + height, self.geometry.bottom))

    def _wrap(self, item: TextItem) -> List[str]:
        return wrap_text(item.text, item.size, item.style, self.geometry.content_width, self.measure)

    def _lead_height(self, items: Sequence[ContentItem], start: int) -> float:
        """Height that must stay on the page after a heading: spacers plus the start of the next block."""
        height = 0.0
        for index in range(start, len(items)):
            item = items[index]
            if isinstance(item, SpaceItem):
                height += item.height
            elif isinstance(item, EnsureSpaceItem):
                continue
            elif isinstance(item, TextItem):
                lines = len(self._wrap(item))
                if item.keep_with_next:
                    # chained headings travel together with whatever the last one leads into
                    return height + lines * line_height(item.size) + PARAGRAPH_GAP + self._lead_height(items, index + 1)
                if item.splittable:
                    lines = min(lines, MIN_ORPHAN_LINES)
                return height + lines * line_height(item.size)
            elif isinstance(item, ImageItem):
                if item.image is None:
                    return height + line_height(PLACEHOLDER_SIZE)
                return height + self.image_size(item.image)[1]
        return 0.0

    def _place_text(self, document: Document, state: LayoutState, item: TextItem, lookahead: float = 0.0) -> LayoutState:
        g = self.geometry
        lines = self._wrap(item)
        lh = line_height(item.size)
        block_height = len(lines) * lh
        keep_whole = (not item.splittable or item.keep_with_next) and block_height <= g.usable_height

        if keep_whole:
            required = block_height + (PARAGRAPH_GAP + lookahead if lookahead else 0.0)
            # Heading plus its lead cannot share a page at all: keep at least the heading whole.
            if required > g.usable_height:
                required = block_height
            state = self._ensure_space(document, state, required)
        else:
            state = self._ensure_space(document, state, min(len(lines), MIN_ORPHAN_LINES) * lh)

        while lines:
            available = g.bottom - state.cursor_y
            count = min(len(lines), int((available + _EPS) // lh))
            if count <= 0:
                if self._at_page_top(state):
                    raise ReportGenerationError(f"Font size {item.size} does not fit on an empty page")
                state = self._new_page(document, state)
                continue

            chunk, lines = lines[:count], lines[count:]
            document.pages[state.page_index].blocks.append(
                TextBlock(chunk, item.size, item.style, g.margin_left, state.cursor_y, lh)
            )
            state = LayoutState(state.page_index, state.cursor_y + count * lh)
            if lines:
                state = self._new_page(document, state)

        return self._advance(state, PARAGRAPH_GAP)

    def _place_image(self, document: Document, state: LayoutState, item: ImageItem) -> LayoutState:
        if item.image is None:
            reason = item.error or "sin archivo"
            placeholder = TextItem(f"{IMAGE_PLACEHOLDER}: {reason}]", size=PLACEHOLDER_SIZE, style="italic")
            return self._place_text(document, state, placeholder)

        width, height = self.image_size(item.image)
        state = self._ensure_space(document, state, height)

        g = self.geometry
        x = g.margin_left + (g.content_width - width) / 2
        document.pages[state.page_index].blocks.append(
            ImageBlock(data=item.image.data, width=width, height=height, x=x, y=state.cursor_y)
        )
        state = LayoutState(state.page_index, state.cursor_y + height)
        return self._advance(state, IMAGE_GAP)

