"""
Public parse entry points.

Every source goes through the same chain: adapter -> line grouper ->
section grouper -> field extractor -> profile enhancer. Adapters are looked up
in an explicit ordered registry; `parse_resume_source` reports failures in a
tagged `ParseResult` instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Literal, Optional, Sequence, Tuple, Union

from resume_structurer.core.docx_extractor import extract_docx_text_items
from resume_structurer.core.errors import AdapterError, UnsupportedSourceError
from resume_structurer.core.field_extractor import extract_resume_from_sections
from resume_structurer.core.heuristics import SECTION_KEYWORDS
from resume_structurer.core.line_grouper import LINE_Y_TOLERANCE, group_text_items_into_lines
from resume_structurer.core.pdf_extractor import extract_pdf_text_items
from resume_structurer.core.profile_enhancer import enhance_profile
from resume_structurer.core.schemas import Resume, TextItem
from resume_structurer.core.section_grouper import KeywordTable, group_lines_into_sections
from resume_structurer.core.text_parser import normalize_plain_text, text_to_text_items

logger = logging.getLogger(__name__)

SourceKind = Literal["pdf", "docx", "text"]
ErrorKind = Literal["unsupported", "adapter"]

DOCX_CONTENT_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
PDF_CONTENT_TYPES = frozenset({"application/pdf"})
TEXT_CONTENT_TYPES = frozenset({"text/plain", "text/markdown", "application/json"})
TEXT_EXTENSIONS = (".txt", ".md")


@dataclass(frozen=True)
class ResumeSource:
    kind: str
    content: Union[bytes, str]
    filename: str = ""
    content_type: str = ""


@dataclass(frozen=True)
class SourceAdapter:
    """Turns one kind of source into (text items, parsed text)."""
    kind: SourceKind
    convert: Callable[[Union[bytes, str]], Tuple[List[TextItem], str]]

    def can_handle(self, source: ResumeSource) -> bool:
        return source.kind == self.kind


@dataclass(frozen=True)
class ParseResult:
    resume: Optional[Resume] = None
    parsed_text: str = ""
    error: str = ""
    error_kind: Optional[ErrorKind] = None
    item_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.resume is not None


def _as_text(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _as_bytes(content: Union[bytes, str]) -> bytes:
    if isinstance(content, str):
        raise AdapterError("Binary document content expected, got text")
    return content


def _convert_text(content: Union[bytes, str]) -> Tuple[List[TextItem], str]:
    text = _as_text(content)
    return text_to_text_items(text), normalize_plain_text(text)


def _convert_docx(content: Union[bytes, str]) -> Tuple[List[TextItem], str]:
    return extract_docx_text_items(_as_bytes(content))


def _convert_pdf(content: Union[bytes, str]) -> Tuple[List[TextItem], str]:
    return extract_pdf_text_items(_as_bytes(content))


ADAPTERS: Tuple[SourceAdapter, ...] = (
    SourceAdapter("pdf", _convert_pdf),
    SourceAdapter("docx", _convert_docx),
    SourceAdapter("text", _convert_text),
)


def detect_source_kind(filename: Optional[str], content_type: Optional[str]) -> Optional[SourceKind]:
    """Pick a source kind from the file extension or MIME type; None if neither is recognized."""
    name = (filename or "").lower()
    ctype = (content_type or "").split(";", 1)[0].strip().lower()

    if name.endswith(".docx") or ctype in DOCX_CONTENT_TYPES:
        return "docx"
    if name.endswith(".pdf") or ctype in PDF_CONTENT_TYPES:
        return "pdf"
    if name.endswith(TEXT_EXTENSIONS) or ctype in TEXT_CONTENT_TYPES:
        return "text"
    return None


def find_adapter(source: ResumeSource, adapters: Sequence[SourceAdapter] = ADAPTERS) -> SourceAdapter:
    for adapter in adapters:
        if adapter.can_handle(source):
            return adapter
    raise UnsupportedSourceError(f"No adapter for source kind '{source.kind}'")


def parse_text_items(
    items: Sequence[TextItem],
    y_tolerance: float = LINE_Y_TOLERANCE,
    keyword_table: KeywordTable = SECTION_KEYWORDS,
) -> Resume:
    lines = group_text_items_into_lines(items, y_tolerance)
    sections = group_lines_into_sections(lines, keyword_table)
    logger.debug(f"Sections: {[(s.label, s.title, len(s.lines)) for s in sections]}")
    draft = extract_resume_from_sections(sections)
    return enhance_profile(sections, draft)


def parse_resume_from_text(text: str, y_tolerance: float = LINE_Y_TOLERANCE) -> Resume:
    return parse_text_items(text_to_text_items(text), y_tolerance)


def parse_resume_from_docx(docx_bytes: bytes, y_tolerance: float = LINE_Y_TOLERANCE) -> Resume:
    """Raises AdapterError when the bytes are not a readable DOCX."""
    items, _ = extract_docx_text_items(docx_bytes)
    return parse_text_items(items, y_tolerance)


def parse_resume_from_pdf(pdf_bytes: bytes, y_tolerance: float = LINE_Y_TOLERANCE) -> Resume:
    """Raises AdapterError when the bytes are not a readable PDF."""
    items, _ = extract_pdf_text_items(pdf_bytes)
    return parse_text_items(items, y_tolerance)


def parse_resume_source(
    source: ResumeSource,
    adapters: Sequence[SourceAdapter] = ADAPTERS,
    y_tolerance: float = LINE_Y_TOLERANCE,
) -> ParseResult:
    try:
        adapter = find_adapter(source, adapters)
    except UnsupportedSourceError as exc:
        return ParseResult(error=str(exc), error_kind="unsupported")

    try:
        items, parsed_text = adapter.convert(source.content)
    except AdapterError as exc:
        logger.warning(f"{adapter.kind} adapter failed for '{source.filename}': {exc}")
        return ParseResult(error=str(exc), error_kind="adapter")

    logger.debug(f"{adapter.kind} adapter produced {len(items)} text items")
    resume = parse_text_items(items, y_tolerance)
    return ParseResult(resume=resume, parsed_text=parsed_text, item_count=len(items))
