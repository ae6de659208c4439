from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


SectionKind = Literal["profile", "work_experience", "education", "skills", "projects", "custom"]

BOLD_FONT_MARKERS = ("bold", "black", "semibold")


class TextItem(BaseModel):
    """One positioned text fragment. Larger y = higher on the page."""
    model_config = ConfigDict(frozen=True)

    text: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    font_name: str = Field(default="Synthetic-Regular", description="Emphasis tag, e.g. 'Synthetic-Bold'")
    has_eol: bool = False
    # Source text between the previous item of the line and this one (", ", " at ", " | ")
    separator: str = " "

    @property
    def is_bold(self) -> bool:
        font = self.font_name.lower()
        return any(marker in font for marker in BOLD_FONT_MARKERS)


class Line(BaseModel):
    """Items sharing one horizontal band, ordered left to right."""
    model_config = ConfigDict(frozen=True)

    items: List[TextItem] = Field(default_factory=list)

    @property
    def text(self) -> str:
        if not self.items:
            return ""
        parts = [self.items[0].text]
        parts.extend(item.separator + item.text for item in self.items[1:])
        return "".join(parts).strip()

    @property
    def y(self) -> float:
        return max((item.y for item in self.items), default=0.0)

    @property
    def is_bold(self) -> bool:
        return bool(self.items) and all(item.is_bold for item in self.items)


class Section(BaseModel):
    """
    A labeled run of lines. When the section was opened by an explicit heading,
    that heading is lines[0] and its label text is `title`; the implicit
    leading profile section has an empty title.
    """
    model_config = ConfigDict(frozen=True)

    label: SectionKind
    title: str = ""
    lines: List[Line] = Field(default_factory=list)

    @property
    def has_heading(self) -> bool:
        return bool(self.title)

    @property
    def content_lines(self) -> List[Line]:
        return self.lines[1:] if self.has_heading else list(self.lines)

    @property
    def inline_text(self) -> str:
        """Text after a colon on the heading line ("Skills: Python, SQL" -> "Python, SQL")."""
        if not self.has_heading or not self.lines:
            return ""
        heading = self.lines[0].text
        if ":" not in heading:
            return ""
        return heading.split(":", 1)[1].strip()


class ResumeProfile(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    url: str = ""
    location: str = ""
    summary: str = ""


class ResumeWorkExperience(BaseModel):
    company: str = ""
    job_title: str = ""
    date: str = ""  # date range as written, e.g. "Jan 2020 - Present"
    descriptions: List[str] = Field(default_factory=list)


class ResumeEducation(BaseModel):
    school: str = ""
    degree: str = ""
    gpa: str = ""
    date: str = ""
    descriptions: List[str] = Field(default_factory=list)


class ResumeProject(BaseModel):
    project: str = ""
    date: str = ""
    descriptions: List[str] = Field(default_factory=list)


class ResumeSkills(BaseModel):
    featured_skills: List[str] = Field(default_factory=list)
    descriptions: List[str] = Field(default_factory=list)


class ResumeCustom(BaseModel):
    descriptions: List[str] = Field(default_factory=list)


class Resume(BaseModel):
    profile: ResumeProfile = Field(default_factory=ResumeProfile)
    work_experiences: List[ResumeWorkExperience] = Field(default_factory=list)
    educations: List[ResumeEducation] = Field(default_factory=list)
    projects: List[ResumeProject] = Field(default_factory=list)
    skills: ResumeSkills = Field(default_factory=ResumeSkills)
    custom: ResumeCustom = Field(default_factory=ResumeCustom)


class ParseRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Raw pasted resume text")
    file: Optional[str] = Field(default=None, description="Base64-encoded resume file")
    mime_type: Optional[str] = None
    filename: Optional[str] = None


class ParseResponse(BaseModel):
    parsed_text: str
    structured: Resume
