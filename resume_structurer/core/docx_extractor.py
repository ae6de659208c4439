import logging
from io import BytesIO
from typing import Iterator, List, Tuple

from docx import Document
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph

from resume_structurer.core.errors import AdapterError
from resume_structurer.core.schemas import TextItem
from resume_structurer.core.text_parser import (
    BOLD_FONT,
    ITEM_HEIGHT,
    LINE_HEIGHT,
    REGULAR_FONT,
    TOP_Y,
    X_GAP,
    synthetic_width,
)

logger = logging.getLogger(__name__)

Run = Tuple[str, bool]  # (raw text, bold)


def _iter_paragraphs(container) -> Iterator[Paragraph]:
    """Body paragraphs in document order, descending into table cells."""
    for block in container.iter_inner_content():
        if isinstance(block, Paragraph):
            yield block
        elif isinstance(block, Table):
            for row in block.rows:
                for cell in row.cells:
                    yield from _iter_paragraphs(cell)


def _style_is_bold(paragraph: Paragraph) -> bool:
    style = paragraph.style
    if style is None:
        return False
    name = (style.name or "").lower()
    if name.startswith("heading") or name == "title":
        return True
    return bool(style.font.bold)


def _paragraph_runs(paragraph: Paragraph) -> List[Run]:
    """
    Collect (text, bold) runs, coalescing neighbours with the same emphasis
    because Word splits runs at arbitrary points (spell check, revisions).
    """
    style_bold = _style_is_bold(paragraph)
    raw: List[Run] = []
    for content in paragraph.iter_inner_content():
        runs = content.runs if isinstance(content, Hyperlink) else [content]
        for run in runs:
            bold = run.bold if run.bold is not None else style_bold
            raw.append((run.text or "", bool(bold)))

    merged: List[Run] = []
    for text, bold in raw:
        if merged and merged[-1][1] == bold:
            merged[-1] = (merged[-1][0] + text, bold)
        else:
            merged.append((text, bold))
    runs: List[Run] = []
    for text, bold in merged:
        if text.strip():
            runs.append((text, bold))
        elif runs:
            # Keep the space a blank run stood for
            runs[-1] = (runs[-1][0] + text, runs[-1][1])

    # Fallback: text that python-docx exposes on the paragraph but not in runs
    if not runs and (paragraph.text or "").strip():
        runs = [(paragraph.text, False)]
    return runs


def _open_document(docx_bytes: bytes):
    try:
        return Document(BytesIO(docx_bytes))
    except Exception as exc:
        raise AdapterError(f"Could not open DOCX document: {exc}") from exc


def extract_docx_text_items(docx_bytes: bytes) -> Tuple[List[TextItem], str]:
    """
    Synthesize text items from DOCX runs.

    Every run becomes one item at increasing x (cumulative width + gap) and a
    y shared by its paragraph; y drops one line-height per paragraph (more when
    the paragraph holds line breaks), including for empty paragraphs.
    Returns (items, parsed_text) where parsed_text joins paragraphs with blank lines.
    """
    doc = _open_document(docx_bytes)
    paragraphs = [_paragraph_runs(p) for p in _iter_paragraphs(doc)]
    logger.debug(f"DOCX: {len(paragraphs)} paragraphs")

    def line_span(runs: List[Run]) -> int:
        paragraph_text = "".join(text for text, _ in runs)
        return max(1, paragraph_text.count("\n") + 1)

    y = TOP_Y + sum(line_span(runs) for runs in paragraphs) * LINE_HEIGHT
    items: List[TextItem] = []
    texts: List[str] = []

    for runs in paragraphs:
        paragraph_text = "".join(text for text, _ in runs).strip()
        if paragraph_text:
            texts.append(paragraph_text)

        x = 0
        for idx, (text, bold) in enumerate(runs):
            clean = " ".join(text.split())
            # Runs split mid-word ("Python" + "ista") rejoin without a space
            joined = idx > 0 and not runs[idx - 1][0][-1:].isspace() and not text[:1].isspace()
            width = synthetic_width(clean)
            items.append(
                TextItem(
                    text=clean,
                    x=x,
                    y=y,
                    width=width,
                    height=ITEM_HEIGHT,
                    font_name=BOLD_FONT if bold else REGULAR_FONT,
                    has_eol=idx == len(runs) - 1,
                    separator="" if joined else " ",
                )
            )
            x += width + X_GAP

        y -= LINE_HEIGHT * line_span(runs)

    return items, "\n\n".join(texts)
