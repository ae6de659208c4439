import pytest

from resume_structurer.core import pdf_extractor
from resume_structurer.core.errors import AdapterError
from resume_structurer.core.pdf_extractor import extract_pdf_text, extract_pdf_text_items
from resume_structurer.core.pipeline import parse_resume_from_pdf, parse_text_items
from resume_structurer.core.schemas import TextItem


def word(text, x0, top, fontname="Helvetica", size=10.0):
    return {
        "text": text,
        "x0": x0,
        "x1": x0 + len(text) * size * 0.5,
        "top": top,
        "bottom": top + size,
        "fontname": fontname,
        "size": size,
    }


class FakePage:
    def __init__(self, words, height=792.0):
        self.words = words
        self.height = height

    def extract_words(self, **kwargs):
        return [dict(w) for w in self.words]


class FakePDF:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_pdf(monkeypatch):
    def install(*pages):
        monkeypatch.setattr(pdf_extractor.pdfplumber, "open", lambda stream: FakePDF(list(pages)))
    return install


def test_words_merge_into_runs_and_dates_stay_separate(fake_pdf):
    fake_pdf(
        FakePage([
            word("Acme", 50, 100, "Helvetica-Bold"),
            word("Corp", 72, 100, "Helvetica-Bold"),
            word("Jan", 450, 100),
            word("2020", 467, 100),
        ])
    )
    items, parsed_text = extract_pdf_text_items(b"%PDF")

    assert [i.text for i in items] == ["Acme Corp", "Jan 2020"]
    assert items[0].is_bold and not items[1].is_bold
    assert [i.has_eol for i in items] == [False, True]
    assert items[0].y == pytest.approx(792 - 110)
    assert parsed_text == "Acme Corp Jan 2020"


def test_earlier_pages_sit_above_later_ones(fake_pdf):
    fake_pdf(
        FakePage([word("first", 50, 700)], height=800),
        FakePage([word("second", 50, 50)], height=800),
    )
    items, parsed_text = extract_pdf_text_items(b"%PDF")
    assert [i.text for i in items] == ["first", "second"]
    assert items[0].y > items[1].y
    assert parsed_text == "first\n\nsecond"
    assert extract_pdf_text(b"%PDF") == "first\n\nsecond"


def test_page_without_text(fake_pdf):
    fake_pdf(FakePage([]))
    assert extract_pdf_text_items(b"%PDF") == ([], "")


def test_unreadable_pdf_raises_adapter_error():
    with pytest.raises(AdapterError):
        parse_resume_from_pdf(b"this is not a pdf")


def test_positioned_items_end_to_end():
    items = [
        TextItem(text="Jane Doe", x=50, y=750, font_name="Helvetica-Bold", has_eol=True),
        TextItem(text="jane@example.com", x=50, y=735, font_name="Helvetica", has_eol=True),
        TextItem(text="EXPERIENCE", x=50, y=705, font_name="Helvetica-Bold", has_eol=True),
        TextItem(text="Globex Corporation", x=50, y=690, font_name="Helvetica-Bold"),
        TextItem(text="Mar 2019 - Present", x=480, y=690.5, font_name="Helvetica", has_eol=True),
        TextItem(text="Senior Developer", x=50, y=676, font_name="Helvetica", has_eol=True),
        TextItem(text="• Shipped the search service", x=60, y=662, font_name="Helvetica", has_eol=True),
    ]
    resume = parse_text_items(items)

    assert resume.profile.name == "Jane Doe"
    assert resume.profile.email == "jane@example.com"
    job = resume.work_experiences[0]
    assert job.company == "Globex Corporation"
    assert job.job_title == "Senior Developer"
    assert job.date == "Mar 2019 - Present"
    assert job.descriptions == ["Shipped the search service"]
