import pytest

from resume_structurer.core import profile_enhancer
from resume_structurer.core.profile_enhancer import enhance_profile, with_age_tag
from resume_structurer.core.schemas import Line, Resume, ResumeProfile, ResumeSkills, Section, TextItem


def line(text):
    return Line(items=[TextItem(text=text, has_eol=True)])


def section(label, title, *texts):
    lines = [line(title)] if title else []
    lines.extend(line(t) for t in texts)
    return Section(label=label, title=title, lines=lines)


class TestAgeTag:
    def test_becomes_summary_when_empty(self):
        assert with_age_tag("", "29") == "Age: 29"

    def test_appended_with_separator(self):
        assert with_age_tag("Backend engineer", "29") == "Backend engineer | Age: 29"

    def test_never_appended_twice(self):
        assert with_age_tag("Backend engineer | Age: 29", "29") == "Backend engineer | Age: 29"

    def test_longer_age_is_not_the_same_tag(self):
        assert with_age_tag("Designer | Age: 29", "2") == "Designer | Age: 29 | Age: 2"


class TestEnhanceProfile:
    def test_fills_contact_fields_from_any_section(self):
        sections = [
            section("profile", "", "Jane Doe"),
            section("custom", "References", "Reach me at jane@example.com or +44 20 7946 0958"),
        ]
        resume = enhance_profile(sections, Resume())
        assert resume.profile.email == "jane@example.com"
        assert resume.profile.phone == "+44 20 7946 0958"
        assert resume.profile.name == "Jane Doe"

    def test_never_overwrites_existing_fields(self):
        sections = [section("profile", "", "Someone Else", "other@example.com")]
        draft = Resume(profile=ResumeProfile(name="Jane Doe", email="jane@example.com"))
        resume = enhance_profile(sections, draft)
        assert resume.profile.name == "Jane Doe"
        assert resume.profile.email == "jane@example.com"

    def test_does_not_mutate_draft(self):
        sections = [section("profile", "", "Jane Doe", "jane@example.com", "Age: 29")]
        draft = Resume()
        resume = enhance_profile(sections, draft)
        assert resume is not draft
        assert draft == Resume()
        assert resume.profile.summary == "Age: 29"

    def test_age_from_years_old(self):
        sections = [section("profile", "", "Jane Doe", "31 years old")]
        draft = Resume(profile=ResumeProfile(summary="Designer"))
        assert enhance_profile(sections, draft).profile.summary == "Designer | Age: 31"

    def test_idempotent(self):
        sections = [
            section("profile", "About Me", "Python, SQL, Docker", "Age: 29"),
        ]
        once = enhance_profile(sections, Resume())
        twice = enhance_profile(sections, once)
        assert twice == once
        assert once.profile.summary == "Age: 29"
        assert once.skills.descriptions == ["Python", "SQL", "Docker"]

    def test_skills_fallback_skipped_when_skills_present(self):
        sections = [section("profile", "About Me", "Python, SQL")]
        draft = Resume(skills=ResumeSkills(featured_skills=["Go"]))
        assert enhance_profile(sections, draft).skills == ResumeSkills(featured_skills=["Go"])

    def test_skills_fallback_merges_bullets_and_fragments(self):
        sections = [
            section("work_experience", "Technical Experience", "- Kubernetes", "Python, SQL", "- Python"),
        ]
        resume = enhance_profile(sections, Resume())
        assert resume.skills.descriptions == ["Kubernetes", "Python", "SQL"]

    def test_location_from_address_label(self):
        sections = [section("profile", "Contact", "Address: 12 Main Street, Springfield")]
        assert enhance_profile(sections, Resume()).profile.location == "12 Main Street, Springfield"

    def test_location_from_city_region_anywhere(self):
        sections = [section("education", "Education", "State University, Austin, TX")]
        assert enhance_profile(sections, Resume()).profile.location == "Austin, TX"

    @pytest.mark.parametrize("text", ["Hardworking, Reliable", "Python, Docker", "DIS Study Abroad, Copenhagen"])
    def test_comma_pairs_that_are_not_places(self, text):
        sections = [section("profile", "", "Jane Doe", text)]
        assert enhance_profile(sections, Resume()).profile.location == ""

    def test_full_state_name_is_a_region(self):
        sections = [section("education", "Education", "Gonzaga University, Spokane, Washington, 2012 - 2016")]
        assert enhance_profile(sections, Resume()).profile.location == "Spokane, Washington"

    def test_name_fallback_skips_vocabulary_and_contacts(self):
        sections = [section("profile", "", "jane@example.com", "Curriculum Vitae 2024", "Jane Doe")]
        assert enhance_profile(sections, Resume()).profile.name == "Jane Doe"

    def test_profile_whitespace_is_collapsed(self):
        draft = Resume(profile=ResumeProfile(name="  Jane   Doe ", location="Austin,  TX "))
        profile = enhance_profile([], draft).profile
        assert profile.name == "Jane Doe"
        assert profile.location == "Austin, TX"

    def test_failure_returns_draft(self, monkeypatch):
        def boom(text):
            raise RuntimeError("regex engine exploded")

        monkeypatch.setattr(profile_enhancer, "find_email", boom)
        draft = Resume(profile=ResumeProfile(name="Jane Doe"))
        assert enhance_profile([section("profile", "", "jane@example.com")], draft) is draft


@pytest.mark.parametrize("text", ["Age: 29", "age - 29", "29 years old", "29 yrs old"])
def test_age_patterns(text):
    resume = enhance_profile([section("profile", "", text)], Resume())
    assert resume.profile.summary == "Age: 29"
