import pytest

from resume_structurer.core.heuristics import DelimiterRule, split_on_at
from resume_structurer.core.line_grouper import group_text_items_into_lines
from resume_structurer.core.pipeline import parse_resume_from_text
from resume_structurer.core.schemas import Resume
from resume_structurer.core.text_parser import (
    BOLD_FONT,
    RIGHT_ALIGN_X,
    normalize_plain_text,
    segment_separators,
    split_line_segments,
    text_to_text_items,
)


SAMPLE_RESUME = """John Doe
john@example.com

Experience
Acme Corp — Engineer (2020–Present)
- Built things
"""


class TestSplitLineSegments:
    def test_double_space_beats_inner_hyphen(self):
        assert split_line_segments("Acme Corp  (Jan 2020 - Present)") == ["Acme Corp", "(Jan 2020 - Present)"]

    def test_dash_inside_parentheses_is_not_a_delimiter(self):
        assert split_line_segments("Acme Corp — Engineer (2020–Present)") == [
            "Acme Corp",
            "Engineer",
            "(2020–Present)",
        ]

    def test_date_range_is_kept_whole(self):
        assert split_line_segments("Globex Inc | Jan 2019 – Dec 2020") == ["Globex Inc", "Jan 2019 – Dec 2020"]

    def test_unspaced_date_range_keeps_its_dash(self):
        assert split_line_segments("Globex Inc — 2019–2020") == ["Globex Inc", "2019–2020"]

    def test_at_splits_title_and_company(self):
        assert split_line_segments("Data Analyst at Initech") == ["Data Analyst", "Initech"]

    def test_bullet_lines_stay_whole(self):
        assert split_line_segments("- Built things | shipped them") == ["- Built things | shipped them"]

    def test_short_comma_lists_stay_whole(self):
        assert split_line_segments("Python, FastAPI, SQL") == ["Python, FastAPI, SQL"]

    def test_blank_line(self):
        assert split_line_segments("   ") == []

    def test_custom_rule_table(self):
        rules = (DelimiterRule("at", split_on_at),)
        # Without the strong-delimiter rule a pipe is ordinary text
        assert split_line_segments("Engineer at Acme | Remote", rules) == ["Engineer", "Acme | Remote"]


class TestTextToTextItems:
    def test_date_segment_is_right_aligned(self):
        items = text_to_text_items("Acme Corp  (Jan 2020 - Present)")
        assert [i.text for i in items] == ["Acme Corp", "(Jan 2020 - Present)"]
        assert items[0].x == 0
        assert items[1].x == RIGHT_ALIGN_X
        assert items[1].has_eol is True
        assert items[0].has_eol is False

    def test_lines_descend(self):
        items = text_to_text_items("first\nsecond\n\nthird")
        ys = [i.y for i in items]
        assert ys == sorted(ys, reverse=True)
        # Paragraph break adds extra vertical space
        assert ys[1] - ys[2] > ys[0] - ys[1]

    def test_upper_case_line_is_bold(self):
        items = text_to_text_items("EXPERIENCE\nAcme Corp")
        assert items[0].font_name == BOLD_FONT
        assert items[0].is_bold
        assert not items[1].is_bold

    def test_empty_text(self):
        assert text_to_text_items("") == []
        assert text_to_text_items("\n\n  \n") == []

    @pytest.mark.parametrize(
        "text",
        [
            "Backend engineer at heart who loves shipping",
            "Globex Inc | Jan 2019 – Dec 2020",
            "Acme Corp — Engineer (2020–Present)",
            "Owned billing, invoicing, tax reporting, refunds, payouts and audits",
        ],
    )
    def test_line_text_keeps_the_delimiters(self, text):
        lines = group_text_items_into_lines(text_to_text_items(text))
        assert len(lines) == 1
        assert len(lines[0].items) > 1
        assert lines[0].text == text

    def test_separators_between_segments(self):
        assert segment_separators("Engineer at Acme, Inc", ["Engineer", "Acme, Inc"]) == ["", " at "]
        assert segment_separators("Acme Corp  (2020)", ["Acme Corp", "(2020)"]) == ["", "  "]


def test_normalize_plain_text_collapses_blank_runs():
    assert normalize_plain_text("a\r\nb\r\n\r\n\r\n\nc  ") == "a\nb\n\nc"


def test_end_to_end_plain_text():
    resume = parse_resume_from_text(SAMPLE_RESUME)

    assert resume.profile.name == "John Doe"
    assert resume.profile.email == "john@example.com"
    assert len(resume.work_experiences) == 1
    job = resume.work_experiences[0]
    assert job.company == "Acme Corp"
    assert job.job_title == "Engineer"
    assert job.date == "2020–Present"
    assert job.descriptions == ["Built things"]


@pytest.mark.parametrize("text", ["", "   ", "\n\n\n"])
def test_empty_input_yields_defaults(text):
    assert parse_resume_from_text(text) == Resume()


def test_summary_keeps_the_words_a_segment_split_on():
    resume = parse_resume_from_text("Jane Doe\njane@example.com\nBackend engineer at heart who loves shipping")
    assert resume.profile.name == "Jane Doe"
    assert resume.profile.summary == "Backend engineer at heart who loves shipping"
