"""
Keyword tables, regexes and small text predicates shared by the adapters,
groupers, extractor and enhancer.

Everything here is immutable (tuples, frozensets, compiled patterns) so the
tables can be passed into the pipeline stages and unit-tested one rule at a time.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from resume_structurer.core.schemas import SectionKind


# ===== SECTION KEYWORDS =====

# Ordered (kind, keywords); first kind with a matching word wins.
# A word matches a keyword or its plural ("skills" -> "skill", "hobbies" -> "hobby").
SECTION_KEYWORDS: Tuple[Tuple[SectionKind, Tuple[str, ...]], ...] = (
    ("work_experience", ("experience", "employment", "work", "career", "internship")),
    ("education", ("education", "academic", "qualification", "training")),
    ("skills", (
        "skill", "technical", "technology", "competency", "competence", "proficiency",
        "expertise", "tool", "stack", "strength",
    )),
    ("projects", ("project", "portfolio")),
    ("profile", ("summary", "objective", "profile", "about", "contact", "personal", "overview")),
    ("custom", (
        "certification", "certificate", "award", "honor", "honour", "achievement",
        "accomplishment", "publication", "volunteer", "volunteering", "interest", "hobby",
        "language", "reference", "activity", "leadership", "course", "coursework",
        "affiliation", "membership", "extracurricular", "patent", "research",
    )),
)

# Words allowed in a heading next to a keyword ("Relevant Work History", "Skills & Tools")
HEADING_FILLER_WORDS = frozenset({
    "and", "of", "my", "the", "key", "core", "relevant", "other", "additional",
    "professional", "selected", "related", "information", "info", "details", "history",
    "me", "to", "in", "for", "recent", "highlights", "areas", "list",
})

# Titles used by the enhancer to find contact / skills-like sections
CONTACT_TITLE_RE = re.compile(r"\b(?:contact|address|personal)", re.IGNORECASE)
SKILLS_TITLE_RE = re.compile(r"\b(?:skill|technical|about)", re.IGNORECASE)

MAX_HEADING_WORDS = 5
MAX_HEADING_CHARS = 48


def _title_words(text: str) -> List[str]:
    title = text.split(":", 1)[0]
    return re.findall(r"[a-z]+", title.lower())


def is_keyword_form(word: str, keyword: str) -> bool:
    """Whole-word match, allowing a plural ("tools", "courses", "activities")."""
    if word in (keyword, keyword + "s", keyword + "es"):
        return True
    return keyword.endswith("y") and word == keyword[:-1] + "ies"


def match_section_keyword(
    text: str,
    keyword_table: Tuple[Tuple[SectionKind, Tuple[str, ...]], ...] = SECTION_KEYWORDS,
) -> Optional[SectionKind]:
    """
    Return the section kind whose keywords name this heading text, or None.

    Every word of the title part (before any colon) must be either a filler word
    or a section keyword, so "Work Experience" matches but "Project Manager" does not.
    """
    words = _title_words(text)
    if not words:
        return None

    def word_kind(word: str) -> Optional[SectionKind]:
        for kind, keywords in keyword_table:
            if any(is_keyword_form(word, keyword) for keyword in keywords):
                return kind
        return None

    kinds = []
    for word in words:
        if word in HEADING_FILLER_WORDS:
            continue
        kind = word_kind(word)
        if kind is None:
            return None
        kinds.append(kind)
    if not kinds:
        return None

    # Table order decides ("Technical Experience" -> work_experience)
    for kind, _ in keyword_table:
        if kind in kinds:
            return kind
    return None


def is_section_vocabulary(text: str) -> bool:
    return match_section_keyword(text) is not None


# ===== DATES =====

MONTH_PATTERN = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?|"
    r"sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
MONTH_RE = re.compile(rf"\b(?:{MONTH_PATTERN})\b\.?", re.IGNORECASE)
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
PRESENT_RE = re.compile(r"\bpresent\b", re.IGNORECASE)


def has_year(text: str) -> bool:
    return bool(YEAR_RE.search(text))


def has_month(text: str) -> bool:
    return bool(MONTH_RE.search(text))


def has_present(text: str) -> bool:
    return bool(PRESENT_RE.search(text))


def is_date_like(text: str) -> bool:
    """Month name, "Present", or a 4-digit year."""
    return has_year(text) or has_month(text) or has_present(text)


# ===== CONTACT PATTERNS =====

EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
# Optional country code, then grouped digits with space / dot / dash separators
PHONE_RE = re.compile(
    r"(?<![\d\w])"
    r"(?:\+\d{1,3}[\s.-]?)?"  # Country code
    r"(?:\(\d{2,4}\)|\d{2,4})"  # Area code (optional parens)
    r"[\s.-]?\d{3,4}"
    r"[\s.-]?\d{3,4}"
    r"(?!\d)"
)
MIN_PHONE_DIGITS = 9
MAX_PHONE_DIGITS = 15
URL_RE = re.compile(
    r"(?:https?://|www\.)[^\s|,;]+"
    r"|\b(?:[\w-]+\.)+(?:com|io|dev|org|net|me|ai)/[^\s|,;]*",
    re.IGNORECASE,
)

# Simple "City, State" detector (e.g., "New York, New York", "Austin, TX")
CITY_REGION_RE = re.compile(r"^[A-Za-z .'-]+,\s*[A-Za-z]{2,}$")
STREET_ADDRESS_RE = re.compile(
    r"\b\d{1,5}\s+(?:[A-Za-z0-9.'-]+\s+){1,4}"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Court|Ct|Place|Pl|Terrace|Parkway|Pkwy)\b\.?"
    r"(?:,\s*[A-Za-z0-9 .'-]+)*",
)
ADDRESS_LABEL_RE = re.compile(r"^\s*(?:address|location|based in)\s*[:\-]\s*(.+)$", re.IGNORECASE)
AGE_RE = re.compile(r"\bage\s*[:\-]?\s*(\d{1,2})\b|\b(\d{1,2})\s*(?:years?|yrs?)\s+old\b", re.IGNORECASE)

# US State abbreviations (2-letter codes)
US_STATES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL", "IN",
    "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV",
    "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN",
    "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY", "DC"
})
# Multi-word US states/territories (normalized for lookup)
MULTI_WORD_STATES = frozenset({
    "new york", "new mexico", "new hampshire", "north carolina", "north dakota",
    "south carolina", "south dakota", "west virginia", "puerto rico"
})
# Full US state names and common countries accepted as the region of "City, Region"
US_STATE_NAMES = frozenset({
    "alabama", "alaska", "arizona", "arkansas", "california", "colorado", "connecticut",
    "delaware", "florida", "georgia", "hawaii", "idaho", "illinois", "indiana", "iowa",
    "kansas", "kentucky", "louisiana", "maine", "maryland", "massachusetts", "michigan",
    "minnesota", "mississippi", "missouri", "montana", "nebraska", "nevada", "ohio",
    "oklahoma", "oregon", "pennsylvania", "tennessee", "texas", "utah", "vermont",
    "virginia", "washington", "wisconsin", "wyoming",
})
COUNTRY_NAMES = frozenset({
    "argentina", "australia", "austria", "bangladesh", "belgium", "brazil", "canada", "chile",
    "china", "colombia", "croatia", "czechia", "denmark", "egypt", "england", "estonia",
    "finland", "france", "germany", "ghana", "greece", "hungary", "india", "indonesia",
    "ireland", "israel", "italy", "japan", "kenya", "korea", "latvia", "lithuania",
    "luxembourg", "malaysia", "mexico", "morocco", "netherlands", "nigeria", "norway",
    "pakistan", "peru", "philippines", "poland", "portugal", "romania", "scotland",
    "serbia", "singapore", "slovakia", "slovenia", "spain", "sweden", "switzerland",
    "taiwan", "thailand", "turkey", "uganda", "ukraine", "uruguay", "vietnam", "wales",
    "uk", "usa", "uae",
})
MULTI_WORD_COUNTRIES = frozenset({
    "united states", "united kingdom", "new zealand", "south africa", "south korea",
    "hong kong", "costa rica", "czech republic", "saudi arabia",
})
NOT_CITY_WORDS = frozenset({"study", "abroad", "institute", "program", "semester", "trimester", "year"})


def find_email(text: str) -> Optional[str]:
    m = EMAIL_RE.search(text)
    return m.group(0) if m else None


def find_phone(text: str) -> Optional[str]:
    for m in PHONE_RE.finditer(text):
        digits = re.sub(r"\D", "", m.group(0))
        if MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            return m.group(0).strip()
    return None


def find_url(text: str) -> Optional[str]:
    if "@" in text:
        return None
    m = URL_RE.search(text)
    return m.group(0).rstrip(".)") if m else None


def is_known_region(text: str) -> bool:
    """US state (code or name) or country, written capitalized ("TX", "Texas", "Denmark")."""
    region = text.strip()
    if not region or not region[0].isupper():
        return False
    if region in US_STATES:
        return True
    lowered = region.lower()
    if " " in lowered:
        return lowered in MULTI_WORD_STATES or lowered in MULTI_WORD_COUNTRIES
    return lowered in US_STATE_NAMES or lowered in COUNTRY_NAMES


def extract_city_region(text: str) -> Optional[str]:
    """
    Extract a "City, State/Country" pair by finding the LAST comma followed by a known region.

    "Acme, San Francisco, California" -> "San Francisco, California"
    "Spokane, Washington, 2012 – 2016" -> "Spokane, Washington"
    "DIS Study Abroad, Copenhagen" -> None ("Copenhagen" is not a region)
    "Hardworking, Reliable" -> None
    """
    commas = [i for i, c in enumerate(text) if c == ","]
    for comma_pos in reversed(commas):
        words_after = text[comma_pos + 1:].split()
        if not words_after:
            continue

        first_word = words_after[0].strip(",.;:–-")
        two_words = " ".join(words_after[:2]).strip(",.;:–-") if len(words_after) >= 2 else ""

        if is_known_region(two_words):
            region = two_words
        elif is_known_region(first_word):
            region = first_word
        else:
            continue

        # Last 1-2 capitalized words before the comma form the city
        city_words: List[str] = []
        for w in reversed(text[:comma_pos].split()):
            if not re.match(r"^[A-Z][a-z]*$", w):
                break
            city_words.insert(0, w)
            if len(city_words) >= 2:
                break
        if not city_words:
            continue
        city = " ".join(city_words)
        if any(word in city.lower() for word in NOT_CITY_WORDS):
            continue
        return f"{city}, {region}"
    return None


def find_location(text: str) -> Optional[str]:
    t = text.strip()
    if not t or "@" in t or len(t) > 120:
        return None
    if CITY_REGION_RE.match(t) and not has_year(t):
        city, region = (part.strip() for part in t.rsplit(",", 1))
        if is_known_region(region) and not any(word in city.lower() for word in NOT_CITY_WORDS):
            return f"{city}, {region}"
    return extract_city_region(t)


def find_street_address(text: str) -> Optional[str]:
    m = STREET_ADDRESS_RE.search(text)
    return m.group(0).strip(" ,") if m else None


def find_age(text: str) -> Optional[str]:
    m = AGE_RE.search(text)
    if not m:
        return None
    return m.group(1) or m.group(2)


# ===== FIELD KEYWORDS =====

JOB_TITLE_RE = re.compile(
    r"\b(?:engineer|developer|manager|analyst|intern|designer|consultant|director|lead|architect|"
    r"specialist|scientist|assistant|coordinator|administrator|officer|president|head|associate|"
    r"representative|technician|teacher|founder|co-founder|owner|programmer|researcher|accountant|"
    r"executive|supervisor|advisor|adviser|nurse|editor|writer|instructor|tutor|trainee|fellow|"
    r"principal|vp|cto|ceo|cfo|sre)s?\b",
    re.IGNORECASE,
)
COMPANY_RE = re.compile(
    r"\b(?:inc|corp|corporation|llc|ltd|limited|company|group|technologies|labs|gmbh|plc|"
    r"solutions|systems|holdings|bank|agency|studios?|ventures|consulting)\b\.?",
    re.IGNORECASE,
)
SCHOOL_RE = re.compile(r"\b(?:university|college|institute|school|academy|polytechnic|conservatory)\b", re.IGNORECASE)
DEGREE_RE = re.compile(
    r"(?<![a-z])(?:bachelor'?s?|master'?s?|associate'?s?|doctorate|ph\.?\s?d|m\.?b\.?a|"
    r"b\.?\s?sc|m\.?\s?sc|b\.?\s?s|m\.?\s?s|b\.?\s?a|m\.?\s?a|b\.?\s?tech|m\.?\s?tech|"
    r"diploma|degree|ged)\.?(?![a-z])",
    re.IGNORECASE,
)
GPA_RE = re.compile(r"\bGPA\b\s*[:\-]?\s*([0-4](?:\.\d{1,2})?(?:\s*/\s*[45](?:\.0{1,2})?)?)", re.IGNORECASE)


def find_gpa(text: str) -> Optional[str]:
    m = GPA_RE.search(text)
    return m.group(1).strip() if m else None


# ===== BULLETS & WHITESPACE =====

BULLET_RE = re.compile(r"^\s*[•●○◦▪■□‣·∙*\-–—>►▸]+\s*")
SKILL_SPLIT_RE = re.compile(r"[,;|•]")
SKILL_LABEL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9\s\+#\-\.\/&]*:\s*")


def is_bullet(text: str) -> bool:
    return bool(BULLET_RE.match(text)) and bool(BULLET_RE.sub("", text).strip())


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def clean_bullet(text: str) -> str:
    return collapse_whitespace(BULLET_RE.sub("", text))


def word_count(text: str) -> int:
    return len(text.split())


def is_upper_text(text: str) -> bool:
    """True when the text has letters and none of them is lower-case."""
    return any(c.isalpha() for c in text) and text == text.upper()


def is_capitalized_words(text: str) -> bool:
    words = [w for w in re.split(r"[\s]+", text.strip()) if w]
    return bool(words) and all(w[0].isupper() for w in words if w[0].isalpha())


# ===== PLAIN-TEXT DELIMITER RULES =====

@dataclass(frozen=True)
class DelimiterRule:
    name: str
    split: Callable[[str], List[str]]


_STRONG_DELIMITER_RE = re.compile(r"\s*[—–]\s*|\s*-{2,}\s*|\s*[•|]\s*|\s{2,}")
_TRAILING_PAREN_RE = re.compile(r"^(.*?)\s*(\([^()]*\))\s*$")
_AT_RE = re.compile(r"\s+at\s+", re.IGNORECASE)
COMMA_SPLIT_MIN_LENGTH = 60
COMMA_FRAGMENT_MAX_WORDS = 6


def _paren_depths(text: str) -> List[int]:
    depths, depth = [], 0
    for ch in text:
        depths.append(depth)
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
    return depths


def split_on_strong_delimiters(text: str) -> List[str]:
    """Runs of 2+ spaces, em/en dash, repeated hyphens, bullet or pipe; never inside parentheses."""
    depths = _paren_depths(text)
    segments, delimiters, start = [], [], 0
    for m in _STRONG_DELIMITER_RE.finditer(text):
        if m.start() == m.end() or depths[m.start()] > 0:
            continue
        segments.append(text[start:m.start()])
        delimiters.append(m.group(0))
        start = m.end()
    segments.append(text[start:])

    # "Jan 2020 – Present" was a range, not two fields
    merged = [segments[0].strip()]
    for delim, seg in zip(delimiters, segments[1:]):
        seg = seg.strip()
        if "-" in delim or "–" in delim or "—" in delim:
            if merged[-1] and seg and is_date_like(merged[-1]) and is_date_like(seg):
                merged[-1] = f"{merged[-1]}{delim}{seg}"
                continue
        merged.append(seg)
    return merged


def split_trailing_date_parenthetical(text: str) -> List[str]:
    m = _TRAILING_PAREN_RE.match(text)
    if not m:
        return [text]
    paren = m.group(2)
    if not (has_year(paren) or has_present(paren)):
        return [text]
    return [m.group(1).strip(), paren]


def split_on_at(text: str) -> List[str]:
    return [part.strip() for part in _AT_RE.split(text)]


def split_long_line_on_commas(text: str) -> List[str]:
    if len(text) <= COMMA_SPLIT_MIN_LENGTH:
        return [text]
    parts = [p.strip() for p in text.split(",")]
    if any(word_count(p) > COMMA_FRAGMENT_MAX_WORDS for p in parts):
        return [text]
    return parts


DELIMITER_RULES: Tuple[DelimiterRule, ...] = (
    DelimiterRule("strong_delimiters", split_on_strong_delimiters),
    DelimiterRule("trailing_date_parenthetical", split_trailing_date_parenthetical),
    DelimiterRule("at", split_on_at),
    DelimiterRule("long_line_commas", split_long_line_on_commas),
)


# ===== DATE RANGES & FIELD CLEANUP =====

_SINGLE_DATE = rf"(?:\b(?:{MONTH_PATTERN})\.?,?\s*)?(?:\b(?:19|20)\d{{2}}\b|\b\d{{1,2}}/(?:19|20)?\d{{2}}\b)"
# "Current" only counts as the end of a range ("2021 - Current")
DATE_RANGE_RE = re.compile(
    rf"(?:{_SINGLE_DATE}|\bpresent\b)"
    rf"(?:\s*(?:-|–|—|to|until)\s*(?:{_SINGLE_DATE}|\bpresent\b|\bcurrent\b))?",
    re.IGNORECASE,
)
_EDGE_PUNCT = " ,;:|-–—()[]"


def find_date_range(text: str) -> Optional[str]:
    """Extract the date or date range written in a fragment ("(Jan 2020 - Present)" -> "Jan 2020 - Present")."""
    m = DATE_RANGE_RE.search(text)
    if not m:
        return None
    return m.group(0).strip()


def strip_dates(text: str) -> str:
    """Remove date ranges and GPA phrases, then trim leftover separators."""
    t = DATE_RANGE_RE.sub(" ", text)
    t = GPA_RE.sub(" ", t)
    t = t.replace("()", " ")
    return collapse_whitespace(t).strip(_EDGE_PUNCT)


def is_mostly_date(text: str) -> bool:
    """Nothing but a date (and punctuation) once dates are removed."""
    leftover = strip_dates(text)
    return sum(c.isalpha() for c in leftover) < 2


def split_skill_fragments(text: str, max_words: int = 4) -> List[str]:
    """
    "Languages: Python, Go; SQL" -> ["Python", "Go", "SQL"]
    Fragments longer than max_words are prose, not skills, and are dropped.
    """
    cleaned = SKILL_LABEL_RE.sub("", clean_bullet(text))
    out = []
    for part in SKILL_SPLIT_RE.split(cleaned):
        skill = part.strip(" .")
        if 2 <= len(skill) <= 40 and word_count(skill) <= max_words and any(c.isalpha() for c in skill):
            out.append(skill)
    return out
