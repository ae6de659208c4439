class ResumeParseError(Exception):
    """Base error for anything that stops a resume from being parsed."""


class AdapterError(ResumeParseError):
    """The source document could not be decoded into text items (corrupt PDF, DOCX without a main part, ...)."""


class UnsupportedSourceError(ResumeParseError):
    """No adapter can handle the given input kind."""
