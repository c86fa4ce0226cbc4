from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class TextBlock:
    """One or more wrapped lines drawn at (x, y). Units are millimetres, y grows downwards."""

    lines: List[str]
    size: float
    style: str
    x: float
    y: float
    line_height: float

    @property
    def height(self) -> float:
        return len(self.lines) * self.line_height

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class ImageBlock:
    data: bytes
    width: float
    height: float
    x: float
    y: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


Block = Union[TextBlock, ImageBlock]


@dataclass
class Page:
    number: int
    blocks: List[Block] = field(default_factory=list)
    # Footer blocks live in the bottom margin and are only added by the numbering pass.
    footer: List[TextBlock] = field(default_factory=list)

    def text(self) -> str:
        parts = [b.content for b in self.blocks if isinstance(b, TextBlock)]
        parts.extend(b.content for b in self.footer)
        return "\n".join(parts)


@dataclass
class Document:
    page_width: float
    page_height: float
    title: str = ""
    pages: List[Page] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def add_page(self) -> Page:
        page = Page(number=len(self.pages) + 1)
        self.pages.append(page)
        return page

    def text(self) -> str:
        return "\n".join(page.text() for page in self.pages)

    def images(self) -> List[ImageBlock]:
        return [b for page in self.pages for b in page.blocks if isinstance(b, ImageBlock)]
