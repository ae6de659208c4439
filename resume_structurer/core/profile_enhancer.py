"""
Regex backstop over the whole document.

Runs after the field extractor and only fills fields the extractor left
empty: contact details, location, an age tag, a name and a skills list.
Any failure here is logged and the draft resume is returned as-is.
"""

import logging
import re
from typing import List, Optional, Sequence

from resume_structurer.core.field_extractor import line_skill_fragments
from resume_structurer.core.heuristics import (
    ADDRESS_LABEL_RE,
    CONTACT_TITLE_RE,
    JOB_TITLE_RE,
    SKILLS_TITLE_RE,
    clean_bullet,
    collapse_whitespace,
    extract_city_region,
    find_age,
    find_email,
    find_location,
    find_phone,
    find_street_address,
    is_bullet,
    is_capitalized_words,
    is_section_vocabulary,
    word_count,
)
from resume_structurer.core.schemas import Line, Resume, ResumeProfile, Section

logger = logging.getLogger(__name__)

NAME_FALLBACK_LINES = 5
MAX_NAME_WORDS = 5
AGE_TAG_SEPARATOR = " | "


def _all_lines(sections: Sequence[Section]) -> List[Line]:
    return [line for section in sections for line in section.lines]


def _first_match(texts: Sequence[str], finder) -> Optional[str]:
    for text in texts:
        found = finder(text)
        if found:
            return found
    return None


def _location_from_contact_sections(sections: Sequence[Section]) -> Optional[str]:
    for section in sections:
        if not CONTACT_TITLE_RE.search(section.title):
            continue
        for line in section.lines:
            text = line.text
            m = ADDRESS_LABEL_RE.match(text)
            if m and m.group(1).strip():
                return m.group(1).strip()
            found = find_street_address(text) or find_location(text)
            if found:
                return found
    return None


def find_document_location(sections: Sequence[Section]) -> Optional[str]:
    """Contact/address sections first, then any street address, then any "City, Region"."""
    location = _location_from_contact_sections(sections)
    if location:
        return location
    texts = [line.text for line in _all_lines(sections)]
    return _first_match(texts, find_street_address) or _first_match(texts, extract_city_region)


def _looks_like_name(text: str) -> bool:
    t = text.strip()
    if not t or word_count(t) > MAX_NAME_WORDS:
        return False
    if "@" in t or "," in t or ":" in t or any(ch.isdigit() for ch in t):
        return False
    if is_bullet(t) or is_section_vocabulary(t) or JOB_TITLE_RE.search(t):
        return False
    return is_capitalized_words(t)


def find_fallback_name(sections: Sequence[Section]) -> Optional[str]:
    profile_lines = [line for s in sections if s.label == "profile" for line in s.content_lines]
    for line in profile_lines[:NAME_FALLBACK_LINES]:
        if _looks_like_name(line.text):
            return line.text.strip()
    return None


def with_age_tag(summary: str, age: str) -> str:
    """Attach "Age: N" to the summary once."""
    tag = f"Age: {age}"
    if not summary:
        return tag
    if re.search(rf"\b{re.escape(tag)}\b", summary):
        return summary
    return f"{summary}{AGE_TAG_SEPARATOR}{tag}"


def collect_fallback_skills(sections: Sequence[Section]) -> List[str]:
    skills: List[str] = []
    for section in sections:
        if not SKILLS_TITLE_RE.search(section.title):
            continue
        candidates: List[str] = []
        if section.inline_text:
            candidates.extend(line_skill_fragments(section.lines[0], after_colon=True))
        for line in section.content_lines:
            if is_bullet(line.text):
                candidates.append(clean_bullet(line.text))
            else:
                candidates.extend(line_skill_fragments(line))
        for skill in candidates:
            if skill and skill not in skills:
                skills.append(skill)
    return skills


def _normalize_profile(profile: ResumeProfile) -> ResumeProfile:
    return profile.model_copy(
        update={name: collapse_whitespace(value) for name, value in profile.model_dump().items()}
    )


def _enhance(sections: Sequence[Section], resume: Resume) -> Resume:
    resume = resume.model_copy(deep=True)
    profile = resume.profile
    texts = [line.text for line in _all_lines(sections)]

    if not profile.email:
        profile.email = _first_match(texts, find_email) or ""
    if not profile.phone:
        profile.phone = _first_match(texts, find_phone) or ""
    if not profile.location:
        profile.location = find_document_location(sections) or ""

    age = _first_match(texts, find_age)
    if age:
        profile.summary = with_age_tag(profile.summary.strip(), age)

    if not profile.name:
        profile.name = find_fallback_name(sections) or ""

    if not resume.skills.featured_skills and not resume.skills.descriptions:
        fallback = collect_fallback_skills(sections)
        if fallback:
            logger.debug(f"Skills fallback collected {len(fallback)} entries")
        for skill in fallback:
            if skill not in resume.skills.descriptions:
                resume.skills.descriptions.append(skill)

    resume.profile = _normalize_profile(profile)
    return resume


def enhance_profile(sections: Sequence[Section], resume: Resume) -> Resume:
    """
    Fill empty profile fields from the full text. Never overwrites a non-empty
    field and never mutates `resume`; on any internal error the draft is
    returned unchanged.
    """
    try:
        return _enhance(sections, resume)
    except Exception:
        logger.exception("Profile enhancement failed; returning extracted draft")
        return resume
