import base64
import binascii
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from resume_structurer.config import Settings, get_settings
from resume_structurer.core.pipeline import ResumeSource, detect_source_kind, parse_resume_source
from resume_structurer.core.schemas import ParseRequest, ParseResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])

EXAMPLE_RESPONSE = {
    "parsed_text": "John Doe\njohn@example.com | (555) 123-4567\n\nExperience\n...",
    "structured": {
        "profile": {
            "name": "John Doe",
            "email": "john@example.com",
            "phone": "(555) 123-4567",
            "url": "",
            "location": "San Francisco, CA",
            "summary": "",
        },
        "work_experiences": [
            {
                "company": "Tech Corp",
                "job_title": "Senior Engineer",
                "date": "Jan 2020 - Present",
                "descriptions": ["Built the billing platform"],
            }
        ],
        "educations": [],
        "projects": [],
        "skills": {"featured_skills": ["Python", "FastAPI"], "descriptions": ["Python, FastAPI"]},
        "custom": {"descriptions": []},
    },
}

ERROR_RESPONSES = {
    400: {"description": "Empty or malformed payload"},
    413: {"description": "Payload larger than the configured upload limit"},
    415: {"description": "Unsupported file format"},
    422: {"description": "File has no extractable text"},
    500: {"description": "The document could not be decoded"},
}


def _run_pipeline(
    kind: str,
    content: Union[bytes, str],
    filename: str,
    content_type: str,
    settings: Settings,
) -> ParseResponse:
    result = parse_resume_source(
        ResumeSource(kind=kind, content=content, filename=filename, content_type=content_type),
        y_tolerance=settings.line_y_tolerance,
    )
    if result.error_kind == "unsupported":
        raise HTTPException(status_code=415, detail=result.error)
    if result.error_kind == "adapter":
        raise HTTPException(status_code=500, detail=result.error)
    if kind == "pdf" and result.item_count == 0:
        raise HTTPException(
            status_code=422,
            detail="PDF appears to have no extractable text. OCR is not supported.",
        )
    return ParseResponse(parsed_text=result.parsed_text, structured=result.resume)


def _check_size(size: int, settings: Settings) -> None:
    if size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Payload is {size} bytes; the limit is {settings.max_upload_bytes} bytes.",
        )


@router.post(
    "/parse",
    response_model=ParseResponse,
    summary="Parse Resume File",
    description="Structure a resume file (DOCX, PDF, or TXT) into profile, experience, education, projects and skills.",
    responses={200: {"content": {"application/json": {"example": EXAMPLE_RESPONSE}}}, **ERROR_RESPONSES},
)
async def parse_resume(
    file: UploadFile = File(..., description="Resume file (DOCX, PDF, or TXT format)"),
    settings: Settings = Depends(get_settings),
):
    """
    Parse an uploaded resume.

    **Supported formats:**
    - DOCX (.docx)
    - PDF (.pdf) - text layer only, no OCR
    - TXT / Markdown (.txt, .md)
    """
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")
    _check_size(len(raw), settings)

    kind = detect_source_kind(file.filename, file.content_type)
    if kind is None:
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {file.content_type}")

    logger.debug(f"/parse: {file.filename} ({kind}, {len(raw)} bytes)")
    return _run_pipeline(kind, raw, file.filename or "", file.content_type or "", settings)


def _decode_file_field(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Field 'file' is not valid base64: {exc}") from exc


@router.post(
    "/parse/json",
    response_model=ParseResponse,
    summary="Parse Resume Text or Base64 File",
    description="Structure pasted resume text, or a base64-encoded DOCX/PDF/TXT file.",
    responses={200: {"content": {"application/json": {"example": EXAMPLE_RESPONSE}}}, **ERROR_RESPONSES},
)
def parse_resume_json(request: ParseRequest, settings: Settings = Depends(get_settings)):
    """
    Either `text` (pasted resume) or `file` (base64) must be given. When `file`
    is used, `filename` or `mime_type` selects the format.
    """
    if request.text is not None and request.text.strip():
        _check_size(len(request.text.encode("utf-8")), settings)
        return _run_pipeline("text", request.text, request.filename or "", request.mime_type or "text/plain", settings)

    if not request.file:
        raise HTTPException(status_code=400, detail="Provide either 'text' or 'file'.")

    raw = _decode_file_field(request.file)
    if not raw:
        raise HTTPException(status_code=400, detail="Decoded file is empty.")
    _check_size(len(raw), settings)

    kind: Optional[str] = detect_source_kind(request.filename, request.mime_type)
    if kind is None:
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {request.mime_type}")
    return _run_pipeline(kind, raw, request.filename or "", request.mime_type or "", settings)
