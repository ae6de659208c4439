import re
from typing import List, Sequence

from resume_structurer.core.heuristics import (
    DELIMITER_RULES,
    DelimiterRule,
    is_bullet,
    is_date_like,
    is_upper_text,
)
from resume_structurer.core.schemas import TextItem


# Synthetic layout settings (shared with the DOCX adapter)
LINE_HEIGHT = 14
ITEM_HEIGHT = 10
CHAR_WIDTH = 6
MIN_ITEM_WIDTH = 10
X_GAP = 10
RIGHT_ALIGN_X = 500
TOP_Y = 1000
BOLD_FONT = "Synthetic-Bold"
REGULAR_FONT = "Synthetic-Regular"


def synthetic_width(text: str) -> float:
    return max(MIN_ITEM_WIDTH, round(len(text) * CHAR_WIDTH))


def _apply_rules(text: str, rules: Sequence[DelimiterRule]) -> List[str]:
    for i, rule in enumerate(rules):
        parts = [p for p in rule.split(text) if p.strip()]
        if len(parts) > 1:
            # Lower-precedence rules may still refine each part
            out: List[str] = []
            for part in parts:
                out.extend(_apply_rules(part, rules[i + 1:]))
            return out
    return [text]


def split_line_segments(line: str, rules: Sequence[DelimiterRule] = DELIMITER_RULES) -> List[str]:
    """
    Recover sub-structure from one line of plain text.

    Rules are tried in precedence order; the first one producing more than one
    non-empty segment wins. Bullet lines are descriptions and stay whole.

    "Acme Corp  (Jan 2020 - Present)" -> ["Acme Corp", "(Jan 2020 - Present)"]
    """
    t = line.strip()
    if not t:
        return []
    if is_bullet(t):
        return [t]
    return [seg.strip() for seg in _apply_rules(t, tuple(rules)) if seg.strip()]


def segment_separators(line: str, segments: Sequence[str]) -> List[str]:
    """
    The source text between consecutive segments, so a line can be rebuilt as written.

    "Engineer at Acme, Inc" with ["Engineer", "Acme, Inc"] -> ["", " at "]
    """
    t = line.strip()
    separators: List[str] = []
    cursor = 0
    for idx, seg in enumerate(segments):
        pos = t.find(seg, cursor)
        if pos < 0:
            separators.append("" if idx == 0 else " ")
            continue
        separators.append(t[cursor:pos] if idx else "")
        cursor = pos + len(seg)
    return separators


def _line_to_items(line: str, y: float, rules: Sequence[DelimiterRule]) -> List[TextItem]:
    segments = split_line_segments(line, rules)
    if not segments:
        return []

    separators = segment_separators(line, segments)
    whole_line_upper = is_upper_text(line)
    items: List[TextItem] = []
    x = 0
    for idx, seg in enumerate(segments):
        width = synthetic_width(seg)
        # Date-like segments emulate right alignment
        item_x = max(RIGHT_ALIGN_X, x) if is_date_like(seg) else x
        bold = whole_line_upper or (idx == 0 and is_upper_text(seg))
        items.append(
            TextItem(
                text=seg,
                x=item_x,
                y=y,
                width=width,
                height=ITEM_HEIGHT,
                font_name=BOLD_FONT if bold else REGULAR_FONT,
                has_eol=idx == len(segments) - 1,
                separator=separators[idx],
            )
        )
        x = item_x + width + X_GAP
    return items


def text_to_text_items(text: str, rules: Sequence[DelimiterRule] = DELIMITER_RULES) -> List[TextItem]:
    """
    Convert plain text (paragraphs / newlines) into synthetic text items so the
    positional pipeline can run unmodified.

    Each line gets a y one line-height below the previous one, with an extra
    half step between paragraphs.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", normalized) if p.strip()]
    paragraph_lines = [[ln.strip() for ln in p.split("\n") if ln.strip()] for p in paragraphs]

    total_lines = sum(len(lines) for lines in paragraph_lines)
    # Start high so ordering resembles a PDF page (descending y)
    y = TOP_Y + total_lines * LINE_HEIGHT * 1.5

    items: List[TextItem] = []
    for lines in paragraph_lines:
        for line in lines:
            items.extend(_line_to_items(line, y, rules))
            y -= LINE_HEIGHT
        # Small gap keeps paragraph boundaries visible to the subsection splitter
        y -= LINE_HEIGHT * 0.5
    return items


def normalize_plain_text(text: str) -> str:
    """The text as returned to callers: CRLF normalized, paragraphs separated by one blank line."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", normalized) if p.strip()]
    return "\n\n".join(paragraphs)
