import logging
from io import BytesIO
from typing import Any, Dict, List, Tuple

import pdfplumber

from resume_structurer.core.errors import AdapterError
from resume_structurer.core.schemas import TextItem

logger = logging.getLogger(__name__)

Word = Dict[str, Any]

# Word grouping tolerances (pdfplumber units)
X_TOLERANCE = 2
Y_TOLERANCE = 2
LINE_Y_TOLERANCE = 3
# Words closer than this fraction of the font size belong to one run
RUN_GAP_RATIO = 0.6


def _page_lines(page: Any) -> List[List[Word]]:
    """
    Group a page's words into visual lines by their 'top' coordinate,
    then order each line left to right.
    """
    words = page.extract_words(
        x_tolerance=X_TOLERANCE,
        y_tolerance=Y_TOLERANCE,
        keep_blank_chars=False,
        use_text_flow=True,
        extra_attrs=["fontname", "size"],
    )
    if not words:
        return []

    words.sort(key=lambda w: (round(w["top"] / LINE_Y_TOLERANCE), w["x0"]))
    lines: List[List[Word]] = []
    current_key = None
    for w in words:
        key = round(w["top"] / LINE_Y_TOLERANCE)
        if current_key is None or key != current_key:
            lines.append([])
            current_key = key
        lines[-1].append(w)
    return lines


def _merge_runs(line: List[Word]) -> List[Word]:
    """
    Merge neighbouring words that share a font and sit closer than a fraction of
    the font size; wide gaps (tab stops, right-aligned dates) start a new run.
    """
    runs: List[Word] = []
    for w in line:
        if runs:
            prev = runs[-1]
            gap = w["x0"] - prev["x1"]
            size = max(float(prev.get("size") or 0), float(w.get("size") or 0), 1.0)
            if prev.get("fontname") == w.get("fontname") and gap <= size * RUN_GAP_RATIO:
                runs[-1] = {
                    **prev,
                    "text": f"{prev['text']} {w['text']}",
                    "x1": w["x1"],
                    "top": min(prev["top"], w["top"]),
                    "bottom": max(prev["bottom"], w["bottom"]),
                }
                continue
        runs.append(dict(w))
    return runs


def _read_pages(pdf_bytes: bytes) -> List[Tuple[float, List[List[Word]]]]:
    try:
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            return [(float(page.height), _page_lines(page)) for page in pdf.pages]
    except Exception as exc:
        raise AdapterError(f"Could not read PDF: {exc}") from exc


def extract_pdf_text_items(pdf_bytes: bytes) -> Tuple[List[TextItem], str]:
    """
    Extract positioned text runs from a PDF.

    Coordinates are converted so that larger y means higher in the document:
    within a page y = page.height - bottom, and earlier pages are stacked above
    later ones. Returns (items, parsed_text).
    """
    pages = _read_pages(pdf_bytes)

    items: List[TextItem] = []
    page_texts: List[str] = []
    offset = sum(height for height, _ in pages)

    for page_i, (height, lines) in enumerate(pages, start=1):
        offset -= height
        line_texts: List[str] = []
        for line in lines:
            runs = _merge_runs(line)
            for idx, run in enumerate(runs):
                items.append(
                    TextItem(
                        text=run["text"],
                        x=float(run["x0"]),
                        y=offset + height - float(run["bottom"]),
                        width=float(run["x1"]) - float(run["x0"]),
                        height=float(run["bottom"]) - float(run["top"]),
                        font_name=run.get("fontname") or "",
                        has_eol=idx == len(runs) - 1,
                    )
                )
            line_texts.append(" ".join(w["text"] for w in line))
        logger.debug(f"PDF page {page_i}: {len(lines)} lines")
        page_texts.append("\n".join(line_texts))

    if not items:
        logger.warning("PDF has no extractable text layer")
    return items, "\n\n".join(t for t in page_texts if t)


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Plain text of the PDF: lines joined by newlines, pages by blank lines."""
    _, parsed_text = extract_pdf_text_items(pdf_bytes)
    return parsed_text
