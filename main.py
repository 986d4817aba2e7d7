from fastapi import FastAPI, UploadFile, File, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from typing import Any, Dict, Optional
from collections.abc import Mapping
from io import BytesIO
import logging

from pydantic import BaseModel

import config
from errors import ResumeServiceError, SchemaViolation, ValidationError
from llm_client import complete, extract_json_object
from prompts import (
    JOB_MATCH,
    LAYOUT_GENERATE,
    TEXT_PARSE,
    VISION_PARSE,
    build_prompt,
)
from resume_schema import TEMPLATE_OPTIONS, normalize_resume, to_wire
from docx_export import build_filename, build_resume_docx

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
}


# ---------- request bodies ----------
# Fields are deliberately loose (Any) so that a missing / wrong-typed value
# reaches our own checks and gets a specific 400 message.

class ParseTextRequest(BaseModel):
    text: Any = None


class JobMatchRequest(BaseModel):
    jobDescription: Any = None
    resume: Any = None


class GenerateResumeRequest(BaseModel):
    resume: Any = None
    template: Any = None


class ExportRequest(BaseModel):
    resume: Any = None


app = FastAPI(title="Resume Builder API")

# Only the configured front-end origins may call us
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


# ============================================================
# ====================== ERROR RESPONDERS ====================
# ============================================================

@app.exception_handler(ResumeServiceError)
async def resume_service_error_handler(request: Request, exc: ResumeServiceError):
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("[API] %s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # a form field named "file" that is not an upload
    if any(tuple(err.get("loc", ())) == ("body", "file") for err in exc.errors()):
        return JSONResponse(status_code=400, content={"message": "A resume file (PDF or image) is required."})
    return JSONResponse(status_code=400, content={"message": "Request body must be a JSON object."})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[API] %s %s crashed", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": str(exc) or "Internal server error"},
    )


# ============================================================
# ========================= HELPERS ==========================
# ============================================================

def _model_resume(parsed: Dict[str, Any]) -> Dict[str, Any]:
    """The partial resume the model returned under "resume" ({} when absent)."""
    value = parsed.get("resume")
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SchemaViolation("AI response 'resume' must be a JSON object.")
    return dict(value)


def _model_text(parsed: Dict[str, Any], key: str) -> str:
    value = parsed.get(key)
    return value if isinstance(value, str) else ""


# ============================================================
# ========================== ROUTES ==========================
# ============================================================

@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/parse-file")
def parse_file(file: Optional[UploadFile] = File(None)):
    """
    Parse an uploaded resume (PDF or image) with the vision model.
    """
    if file is None:
        raise ValidationError("A resume file (PDF or image) is required.")

    data = file.file.read()
    if not data:
        raise ValidationError("The uploaded file is empty.")
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"The uploaded file is larger than {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )

    mime_type = (file.content_type or "").lower()
    if mime_type not in ALLOWED_UPLOAD_TYPES:
        raise ValidationError("Only PDF, PNG, JPEG or WEBP files are supported.")

    logger.info("[PARSE] file %s (%s, %d bytes)", file.filename, mime_type, len(data))
    raw = complete(
        VISION_PARSE,
        build_prompt(VISION_PARSE),
        file_bytes=data,
        mime_type=mime_type,
        filename=file.filename,
    )
    parsed = extract_json_object(raw)
    resume = normalize_resume(parsed.get("resume"))
    return {"resume": to_wire(resume)}


@app.post("/api/parse-text")
def parse_text(req: Optional[ParseTextRequest] = None):
    """
    Normalize pasted resume text into the structured document.
    """
    text = req.text if req else None
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Resume text is required.")

    logger.info("[PARSE] text (%d chars)", len(text))
    raw = complete(TEXT_PARSE, build_prompt(TEXT_PARSE, text=text))
    parsed = extract_json_object(raw)
    resume = normalize_resume(parsed.get("resume"))
    return {"resume": to_wire(resume)}


@app.post("/api/job-match")
def job_match(req: Optional[JobMatchRequest] = None):
    """
    Tailor the resume to a job description.

    The caller's jobDescription always wins over whatever the model echoed.
    A missing resume tailors the empty default.
    """
    job_description = req.jobDescription if req else None
    if not isinstance(job_description, str) or not job_description.strip():
        raise ValidationError("jobDescription is required.")
    if req.resume is not None and not isinstance(req.resume, Mapping):
        raise ValidationError("resume must be a JSON object.")

    resume = normalize_resume(req.resume)
    raw = complete(
        JOB_MATCH,
        build_prompt(JOB_MATCH, job_description=job_description, resume=resume),
    )
    parsed = extract_json_object(raw)

    updated = normalize_resume(
        {
            **to_wire(resume),
            **_model_resume(parsed),
            "jobDescription": job_description,
        }
    )
    return {
        "tailoredText": _model_text(parsed, "tailoredResumeText"),
        "updatedResume": to_wire(updated),
    }


@app.post("/api/generate-resume")
def generate_resume(req: Optional[GenerateResumeRequest] = None):
    """
    Ask the layout model for a print-ready text version of the resume.

    The chosen template (explicit, or the resume's own) overrides the
    model's; the rest of resumeSettings stays as the caller sent it.
    """
    if req is None or not isinstance(req.resume, Mapping):
        raise ValidationError("resume payload is required.")

    resume = normalize_resume(req.resume)
    template = req.template if req.template is not None else resume.resume_settings.template
    if template not in TEMPLATE_OPTIONS:
        raise ValidationError(f"template must be one of: {', '.join(TEMPLATE_OPTIONS)}.")

    raw = complete(
        LAYOUT_GENERATE,
        build_prompt(LAYOUT_GENERATE, template=template, resume=resume),
    )
    parsed = extract_json_object(raw)

    base = to_wire(resume)
    updated = normalize_resume(
        {
            **base,
            **_model_resume(parsed),
            "resumeSettings": {**base["resumeSettings"], "template": template},
        }
    )
    return {
        "formattedText": _model_text(parsed, "formattedText"),
        "updatedResume": to_wire(updated),
    }


@app.post("/api/export-docx")
def export_docx(req: Optional[ExportRequest] = None):
    """
    Render the resume to a DOCX attachment using its own template settings.
    """
    if req is None or not isinstance(req.resume, Mapping):
        raise ValidationError("resume payload is required.")

    resume = normalize_resume(req.resume)
    payload = build_resume_docx(resume)
    filename = build_filename(resume)

    return StreamingResponse(
        BytesIO(payload),
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
