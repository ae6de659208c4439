import logging
import re
from statistics import median
from typing import Callable, List, Optional, Sequence, Set, Tuple

from resume_structurer.core.feature_scoring import (
    Candidate,
    Feature,
    FeatureSet,
    FieldMatch,
    candidates_from_lines,
    follows_word,
    is_bold,
    is_first_item,
    is_first_line,
    is_leading_item,
    is_right_aligned,
    pick_best,
    precedes_word,
    text_check,
    text_matches,
)
from resume_structurer.core.heuristics import (
    COMPANY_RE,
    CONTACT_TITLE_RE,
    DEGREE_RE,
    JOB_TITLE_RE,
    SCHOOL_RE,
    clean_bullet,
    find_date_range,
    find_email,
    find_gpa,
    find_location,
    find_phone,
    find_url,
    has_month,
    has_present,
    has_year,
    is_bullet,
    is_capitalized_words,
    is_date_like,
    is_mostly_date,
    is_section_vocabulary,
    split_skill_fragments,
    strip_dates,
    word_count,
)
from resume_structurer.core.schemas import (
    Line,
    Resume,
    ResumeCustom,
    ResumeEducation,
    ResumeProfile,
    ResumeProject,
    ResumeSkills,
    ResumeWorkExperience,
    Section,
    SectionKind,
)

logger = logging.getLogger(__name__)

# A vertical gap this many times the section's typical line gap starts a new subsection
SUBSECTION_GAP_RATIO = 1.4
MAX_INFO_LINES = 3
MAX_INFO_WORDS = 12
MAX_HEADING_LIKE_WORDS = 12
PROFILE_SCAN_LINES = 12

NAME_TEXT_RE = re.compile(r"[A-Za-z][A-Za-z .'\-]{1,58}")


# ===== FEATURE TABLES =====

def _words_over(n: int) -> Callable[[Candidate], bool]:
    return lambda c: word_count(c.text) > n


_mostly_date = text_check(is_mostly_date)


def _has_contact(c: Candidate) -> bool:
    return "@" in c.text or find_url(c.text) is not None


DATE_FEATURES: FeatureSet = (
    Feature(1, extract=find_date_range),
    Feature(1, text_check(has_year)),
    Feature(1, text_check(has_month)),
    Feature(1, text_check(has_present)),
    Feature(1, lambda c: is_date_like(c.text) and is_right_aligned(c)),
    Feature(-3, _words_over(8)),
)

JOB_TITLE_FEATURES: FeatureSet = (
    Feature(4, text_matches(JOB_TITLE_RE)),
    Feature(1, is_first_line),
    # "Company | Title": the leading fragment is the company
    Feature(-1, is_leading_item),
    # "Title at Company"
    Feature(2, precedes_word("at")),
    Feature(-3, follows_word("at")),
    Feature(-2, text_matches(COMPANY_RE)),
    Feature(-4, _mostly_date),
    Feature(-4, _has_contact),
    Feature(-3, _words_over(8)),
)

COMPANY_FEATURES: FeatureSet = (
    Feature(4, text_matches(COMPANY_RE)),
    Feature(2, is_bold),
    Feature(1, is_first_line),
    Feature(1, is_first_item),
    Feature(3, follows_word("at")),
    Feature(-3, precedes_word("at")),
    Feature(-4, text_matches(JOB_TITLE_RE)),
    Feature(-4, _mostly_date),
    Feature(-4, _has_contact),
    Feature(-3, _words_over(8)),
)

SCHOOL_FEATURES: FeatureSet = (
    Feature(4, text_matches(SCHOOL_RE)),
    Feature(1, is_bold),
    Feature(1, is_first_line),
    Feature(-2, text_matches(DEGREE_RE)),
    Feature(-4, _mostly_date),
    Feature(-3, _words_over(10)),
)

DEGREE_FEATURES: FeatureSet = (
    Feature(4, text_matches(DEGREE_RE)),
    Feature(-2, text_matches(SCHOOL_RE)),
    Feature(-4, _mostly_date),
    Feature(-3, _words_over(12)),
)

GPA_FEATURES: FeatureSet = (
    Feature(4, extract=find_gpa),
)

PROJECT_FEATURES: FeatureSet = (
    Feature(2, is_first_line),
    Feature(1, is_first_item),
    Feature(2, is_bold),
    Feature(-4, _mostly_date),
    Feature(-3, _words_over(10)),
)

EMAIL_FEATURES: FeatureSet = (Feature(4, extract=find_email),)
PHONE_FEATURES: FeatureSet = (Feature(4, extract=find_phone),)
URL_FEATURES: FeatureSet = (Feature(4, extract=find_url),)
LOCATION_FEATURES: FeatureSet = (Feature(4, extract=find_location),)

NAME_FEATURES: FeatureSet = (
    Feature(3, lambda c: bool(NAME_TEXT_RE.fullmatch(c.text.strip()))),
    Feature(2, text_check(is_capitalized_words)),
    Feature(2, is_bold),
    Feature(1, is_first_line),
    Feature(1, lambda c: word_count(c.text) >= 2),
    Feature(-3, text_matches(JOB_TITLE_RE)),
    Feature(-10, text_check(is_section_vocabulary)),
    Feature(-10, _words_over(5)),
    Feature(-10, lambda c: "@" in c.text or any(ch.isdigit() for ch in c.text)),
)


# ===== SUBSECTIONS =====

def _is_heading_like(line: Line) -> bool:
    """Emphasized, or carrying a date, and not a bullet."""
    text = line.text
    if not text or is_bullet(text):
        return False
    if line.items and line.items[0].is_bold:
        return True
    return is_date_like(text) and word_count(text) <= MAX_HEADING_LIKE_WORDS


def _has_date(line: Line) -> bool:
    return not is_bullet(line.text) and is_date_like(line.text)


def split_subsections(lines: Sequence[Line]) -> List[List[Line]]:
    """
    Split a section's content into entries (one job, one degree, one project).

    A heading-like line starts a new entry once the open entry already has a
    body line, or when both carry dates; an unusually large vertical gap
    always starts one.
    """
    if not lines:
        return []

    gaps = [prev.y - line.y for prev, line in zip(lines, lines[1:])]
    positive = [g for g in gaps if g > 0]
    typical = median(positive) if positive else 0.0

    subsections: List[List[Line]] = []
    current: List[Line] = []
    for idx, line in enumerate(lines):
        if current:
            big_gap = typical > 0 and gaps[idx - 1] > typical * SUBSECTION_GAP_RATIO
            heading = _is_heading_like(line)
            has_body = any(not _is_heading_like(prev) for prev in current[1:])
            both_dated = _has_date(line) and any(_has_date(prev) for prev in current)
            if big_gap or (heading and (has_body or both_dated)):
                subsections.append(current)
                current = []
        current.append(line)
    if current:
        subsections.append(current)
    return subsections


def _split_info_lines(subsection: Sequence[Line]) -> Tuple[List[Line], List[Line]]:
    info: List[Line] = []
    for line in subsection:
        text = line.text
        if len(info) >= MAX_INFO_LINES or is_bullet(text) or word_count(text) > MAX_INFO_WORDS:
            break
        info.append(line)
    return info, list(subsection[len(info):])


def extract_descriptions(lines: Sequence[Line]) -> List[str]:
    """
    Turn residual lines into description bullets.

    When the lines use bullet markers, unmarked lines following a marked one
    are wrapped continuations of it; otherwise every line is its own entry.
    """
    texts = [line.text for line in lines if line.text.strip()]
    uses_markers = any(is_bullet(t) for t in texts)

    descriptions: List[str] = []
    continuing = False
    for t in texts:
        cleaned = clean_bullet(t)
        if not cleaned:
            continue
        if uses_markers and not is_bullet(t) and continuing:
            descriptions[-1] = f"{descriptions[-1]} {cleaned}"
            continue
        descriptions.append(cleaned)
        continuing = is_bullet(t)
    return descriptions


class _Resolver:
    """Resolves fields one after another over a fixed candidate list, tracking what is used."""

    def __init__(self, lines: Sequence[Line]):
        self.candidates = candidates_from_lines(lines)
        self.consumed: Set[Tuple[int, int]] = set()
        self.used_lines: Set[int] = set()

    def resolve(self, features: FeatureSet, clean: bool = True) -> str:
        match: Optional[FieldMatch] = pick_best(self.candidates, features, exclude=self.consumed)
        if match is None:
            return ""
        self.used_lines.add(match.candidate.line_index)
        if clean:
            self.consumed.add(match.candidate.key)
            return strip_dates(match.text)
        # Only a pure date fragment is used up by its date
        if is_mostly_date(match.candidate.text):
            self.consumed.add(match.candidate.key)
        return match.text.strip("()[] ")


def _residual_lines(info: Sequence[Line], rest: Sequence[Line], used_lines: Set[int]) -> List[Line]:
    unused_info = [line for idx, line in enumerate(info) if idx not in used_lines]
    return unused_info + list(rest)


# ===== PER-SECTION EXTRACTORS =====

def _sections_of(sections: Sequence[Section], kind: SectionKind) -> List[Section]:
    return [s for s in sections if s.label == kind]


def extract_work_experiences(sections: Sequence[Section]) -> List[ResumeWorkExperience]:
    out: List[ResumeWorkExperience] = []
    for section in _sections_of(sections, "work_experience"):
        for sub in split_subsections(section.content_lines):
            info, rest = _split_info_lines(sub)
            resolver = _Resolver(info)
            date = resolver.resolve(DATE_FEATURES, clean=False)
            job_title = resolver.resolve(JOB_TITLE_FEATURES)
            company = resolver.resolve(COMPANY_FEATURES)
            entry = ResumeWorkExperience(
                company=company,
                job_title=job_title,
                date=date,
                descriptions=extract_descriptions(_residual_lines(info, rest, resolver.used_lines)),
            )
            logger.debug(f"  -> Found experience entry: company='{company}', title='{job_title}'")
            out.append(entry)
    return out


def extract_educations(sections: Sequence[Section]) -> List[ResumeEducation]:
    out: List[ResumeEducation] = []
    for section in _sections_of(sections, "education"):
        for sub in split_subsections(section.content_lines):
            info, rest = _split_info_lines(sub)
            resolver = _Resolver(info)
            date = resolver.resolve(DATE_FEATURES, clean=False)
            gpa = resolver.resolve(GPA_FEATURES, clean=False)
            school = resolver.resolve(SCHOOL_FEATURES)
            degree = resolver.resolve(DEGREE_FEATURES)
            logger.debug(f"  -> Found education entry: school='{school}', degree='{degree}'")
            out.append(
                ResumeEducation(
                    school=school,
                    degree=degree,
                    gpa=gpa,
                    date=date,
                    descriptions=extract_descriptions(_residual_lines(info, rest, resolver.used_lines)),
                )
            )
    return out


def extract_projects(sections: Sequence[Section]) -> List[ResumeProject]:
    out: List[ResumeProject] = []
    for section in _sections_of(sections, "projects"):
        for sub in split_subsections(section.content_lines):
            info, rest = _split_info_lines(sub)
            resolver = _Resolver(info)
            date = resolver.resolve(DATE_FEATURES, clean=False)
            project = resolver.resolve(PROJECT_FEATURES)
            out.append(
                ResumeProject(
                    project=project,
                    date=date,
                    descriptions=extract_descriptions(_residual_lines(info, rest, resolver.used_lines)),
                )
            )
    return out


def _section_texts(section: Section) -> List[str]:
    texts = [section.inline_text] if section.inline_text else []
    texts.extend(line.text for line in section.content_lines)
    return texts


def line_skill_fragments(line: Line, after_colon: bool = False) -> List[str]:
    """
    Skill fragments of one line, item by item, since an adapter may already
    have split the list ("Skills: Python", "SQL", ...) and line text drops the commas.
    With after_colon, only text after the first colon counts (heading lines).
    """
    out: List[str] = []
    seen_colon = not after_colon
    for item in line.items:
        text = item.text
        if not seen_colon:
            if ":" not in text:
                continue
            text = text.split(":", 1)[1]
            seen_colon = True
        out.extend(split_skill_fragments(text))
    return out


def section_skill_fragments(section: Section) -> List[str]:
    fragments: List[str] = []
    if section.inline_text:
        fragments.extend(line_skill_fragments(section.lines[0], after_colon=True))
    for line in section.content_lines:
        fragments.extend(line_skill_fragments(line))
    return fragments


def extract_skills(sections: Sequence[Section]) -> ResumeSkills:
    descriptions: List[str] = []
    featured: List[str] = []
    for section in _sections_of(sections, "skills"):
        descriptions.extend(c for c in (clean_bullet(t) for t in _section_texts(section)) if c)
        for skill in section_skill_fragments(section):
            if skill not in featured:
                featured.append(skill)
    return ResumeSkills(featured_skills=featured, descriptions=descriptions)


def extract_custom(sections: Sequence[Section]) -> ResumeCustom:
    descriptions: List[str] = []
    for section in _sections_of(sections, "custom"):
        descriptions.extend(c for c in (clean_bullet(t) for t in _section_texts(section)) if c)
    return ResumeCustom(descriptions=descriptions)


def extract_profile(sections: Sequence[Section]) -> ResumeProfile:
    """
    Scan the top profile lines for contact fields and a name; whatever is left
    uncaptured becomes the summary.
    """
    profile_sections = _sections_of(sections, "profile")
    lines: List[Line] = []
    summary_line_ids: List[int] = []
    inline: List[str] = []
    for section in profile_sections:
        is_contact = bool(CONTACT_TITLE_RE.search(section.title))
        if section.inline_text and not is_contact:
            inline.append(section.inline_text)
        for line in section.content_lines:
            if not is_contact:
                summary_line_ids.append(len(lines))
            lines.append(line)

    if not lines and not inline:
        return ResumeProfile()

    resolver = _Resolver(lines[:PROFILE_SCAN_LINES])
    email = resolver.resolve(EMAIL_FEATURES, clean=False)
    phone = resolver.resolve(PHONE_FEATURES, clean=False)
    url = resolver.resolve(URL_FEATURES, clean=False)
    location = resolver.resolve(LOCATION_FEATURES, clean=False)

    # A fragment that held any contact detail cannot be the name
    captured = {c.key for c in resolver.candidates if c.line_index in resolver.used_lines}
    resolver.consumed |= captured
    name = resolver.resolve(NAME_FEATURES, clean=False)

    summary_parts = list(inline)
    for idx in summary_line_ids:
        if idx in resolver.used_lines:
            continue
        cleaned = clean_bullet(lines[idx].text)
        if cleaned:
            summary_parts.append(cleaned)

    return ResumeProfile(
        name=name,
        email=email,
        phone=phone,
        url=url,
        location=location,
        summary=" ".join(summary_parts),
    )


def extract_resume_from_sections(sections: Sequence[Section]) -> Resume:
    """Build the draft resume. Fields that cannot be identified keep their empty defaults."""
    resume = Resume(
        profile=extract_profile(sections),
        work_experiences=extract_work_experiences(sections),
        educations=extract_educations(sections),
        projects=extract_projects(sections),
        skills=extract_skills(sections),
        custom=extract_custom(sections),
    )
    logger.debug(
        f"Extracted {len(resume.work_experiences)} experiences, {len(resume.educations)} educations, "
        f"{len(resume.projects)} projects"
    )
    return resume
