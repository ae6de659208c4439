import logging

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from resume_structurer.api.routes.parse import router as parse_router
from resume_structurer.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    description="Turns PDF, DOCX or pasted-text resumes into a structured resume record",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.include_router(parse_router)


@app.get("/", tags=["health"])
def root():
    return {"service": "resume-structurer", "status": "running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    app.openapi_schema = get_openapi(
        title=f"{settings.app_name} API",
        version="0.1.0",
        description="Layout-aware resume structuring: profile, experience, education, projects, skills",
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi
