import logging
from typing import List, Optional, Sequence, Tuple

from resume_structurer.core.heuristics import (
    MAX_HEADING_CHARS,
    MAX_HEADING_WORDS,
    SECTION_KEYWORDS,
    is_bullet,
    is_date_like,
    is_upper_text,
    match_section_keyword,
    word_count,
)
from resume_structurer.core.schemas import Line, Section, SectionKind

logger = logging.getLogger(__name__)

KeywordTable = Tuple[Tuple[SectionKind, Tuple[str, ...]], ...]

# Sections whose content is free-form; an emphasized unknown heading ends them
FREE_FORM_KINDS = frozenset({"skills", "custom", "profile"})

# Sections made of entries; a "Label: values" line inside an entry belongs to it
ENTRY_KINDS = frozenset({"work_experience", "education", "projects"})


def _heading_title(line: Line) -> str:
    return line.text.split(":", 1)[0].strip()


def _is_short_title(title: str) -> bool:
    return (
        bool(title)
        and word_count(title) <= MAX_HEADING_WORDS
        and len(title) <= MAX_HEADING_CHARS
        and not is_date_like(title)
    )


def keyword_heading_kind(line: Line, keyword_table: KeywordTable = SECTION_KEYWORDS) -> Optional[SectionKind]:
    """Section kind named by this line ("Work Experience", "SKILLS:", ...), or None."""
    text = line.text
    if not text or is_bullet(text):
        return None
    title = _heading_title(line)
    if not _is_short_title(title) or not title[0].isupper():
        return None
    return match_section_keyword(title, keyword_table)


def is_emphasized_heading(line: Line) -> bool:
    """A single short, alphabetic item that is both bold and upper-case ("LEADERSHIP")."""
    if len(line.items) != 1:
        return False
    title = _heading_title(line)
    if not _is_short_title(title):
        return False
    if not all(c.isalpha() or c in " &/-'" for c in title):
        return False
    return line.is_bold and is_upper_text(title)


def is_entry_label_line(line: Line, next_line: Optional[Line]) -> bool:
    """
    A "Technologies: Python, Go" line that the entry continues after.

    The label carries inline values and the next line is a bullet or a dated
    entry header, so the line is part of the open entry, not a new section.
    """
    text = line.text
    if ":" not in text or not text.split(":", 1)[1].strip():
        return False
    if next_line is None:
        return False
    return is_bullet(next_line.text) or is_date_like(next_line.text)


def group_lines_into_sections(
    lines: Sequence[Line],
    keyword_table: KeywordTable = SECTION_KEYWORDS,
) -> List[Section]:
    """
    Split lines into ordered sections.

    Lines before the first heading form an implicit profile section. A heading
    line is kept as the first line of the section it opens, so every input line
    lands in exactly one section.
    """
    sections: List[Section] = []
    label: SectionKind = "profile"
    title = ""
    current: List[Line] = []
    seen_heading = False

    def flush() -> None:
        if current or title:
            sections.append(Section(label=label, title=title, lines=list(current)))

    for idx, line in enumerate(lines):
        kind = keyword_heading_kind(line, keyword_table)
        if kind is not None and label in ENTRY_KINDS:
            next_line = lines[idx + 1] if idx + 1 < len(lines) else None
            if is_entry_label_line(line, next_line):
                kind = None
        if kind is None and seen_heading and label in FREE_FORM_KINDS and is_emphasized_heading(line):
            kind = "custom"

        if kind is not None:
            logger.debug(f"SECTION HEADER DETECTED: '{line.text}' -> section_type='{kind}'")
            flush()
            label, title, current = kind, _heading_title(line), [line]
            seen_heading = True
            continue

        current.append(line)

    flush()
    return sections
