import io
import zipfile

import pytest

from errors import UpstreamError
from prompts import JOB_MATCH, LAYOUT_GENERATE, TEXT_PARSE, VISION_PARSE
from resume_schema import SECTION_KEYS, empty_resume, to_wire


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ---------- parse-text ----------

def test_parse_text_returns_normalized_resume(client, fake_model):
    fake_model.reply_json(
        {"resume": {"resumeTitle": "Imported", "personalInformation": {"firstName": "Linus"}}}
    )

    resp = client.post("/api/parse-text", json={"text": "Linus, kernel hacker"})

    assert resp.status_code == 200
    resume = resp.json()["resume"]
    assert resume["resumeTitle"] == "Imported"
    assert resume["personalInformation"]["firstName"] == "Linus"
    assert resume["workExperience"] == []
    assert resume["resumeSettings"]["sectionOrder"] == list(SECTION_KEYS)
    assert fake_model.calls[0]["operation"] == TEXT_PARSE
    assert "Linus, kernel hacker" in fake_model.calls[0]["prompt"]


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"text": 12}])
def test_parse_text_requires_text(client, fake_model, body):
    resp = client.post("/api/parse-text", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Resume text is required."}
    assert fake_model.calls == []


def test_parse_text_rejects_non_object_body(client, fake_model):
    resp = client.post("/api/parse-text", json=["text"])
    assert resp.status_code == 400


def test_parse_text_without_body_gets_route_message(client, fake_model):
    resp = client.post("/api/parse-text")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Resume text is required."}


def test_invalid_json_body_is_400(client, fake_model):
    resp = client.post(
        "/api/parse-text",
        content=b"{bad",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Request body must be a JSON object."}
    assert fake_model.calls == []


@pytest.mark.parametrize(
    "path,message",
    [
        ("/api/job-match", "jobDescription is required."),
        ("/api/generate-resume", "resume payload is required."),
        ("/api/export-docx", "resume payload is required."),
    ],
)
def test_missing_body_gets_route_message(client, fake_model, path, message):
    resp = client.post(path)
    assert resp.status_code == 400
    assert resp.json() == {"message": message}
    assert fake_model.calls == []


def test_malformed_model_output_is_500(client, fake_model):
    fake_model.reply = "I am unable to help with that."
    resp = client.post("/api/parse-text", json={"text": "resume"})
    assert resp.status_code == 500
    assert resp.json()["message"] == "AI response did not contain JSON."


def test_schema_violation_from_model_is_500(client, fake_model):
    fake_model.reply_json({"resume": {"resumeSettings": {"fontFamily": "Papyrus"}}})
    resp = client.post("/api/parse-text", json={"text": "resume"})
    assert resp.status_code == 500
    assert "fontFamily" in resp.json()["message"]


def test_upstream_error_is_500(client, fake_model):
    fake_model.reply = UpstreamError("Model provider returned HTTP 503.")
    resp = client.post("/api/parse-text", json={"text": "resume"})
    assert resp.status_code == 500
    assert resp.json() == {"message": "Model provider returned HTTP 503."}


# ---------- parse-file ----------

def test_parse_file_sends_attachment(client, fake_model):
    fake_model.reply_json({"resume": {"resumeTitle": "From PDF"}})

    resp = client.post(
        "/api/parse-file",
        files={"file": ("cv.pdf", b"%PDF-1.7 fake", "application/pdf")},
    )

    assert resp.status_code == 200
    assert resp.json()["resume"]["resumeTitle"] == "From PDF"
    call = fake_model.calls[0]
    assert call["operation"] == VISION_PARSE
    assert call["file_bytes"] == b"%PDF-1.7 fake"
    assert call["mime_type"] == "application/pdf"
    assert call["filename"] == "cv.pdf"


def test_parse_file_requires_file(client, fake_model):
    resp = client.post("/api/parse-file")
    assert resp.status_code == 400
    assert resp.json() == {"message": "A resume file (PDF or image) is required."}


def test_parse_file_plain_form_field_is_not_a_file(client, fake_model):
    resp = client.post("/api/parse-file", data={"file": "notafile"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "A resume file (PDF or image) is required."}
    assert fake_model.calls == []


def test_parse_file_rejects_unsupported_type(client, fake_model):
    resp = client.post("/api/parse-file", files={"file": ("cv.txt", b"plain", "text/plain")})
    assert resp.status_code == 400
    assert fake_model.calls == []


def test_parse_file_rejects_oversized_upload(client, fake_model, monkeypatch):
    import config

    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)
    resp = client.post("/api/parse-file", files={"file": ("cv.png", b"x" * 11, "image/png")})
    assert resp.status_code == 400
    assert fake_model.calls == []


# ---------- job-match ----------

def test_job_match_caller_description_wins(client, fake_model):
    fake_model.reply_json(
        {
            "tailoredResumeText": "TAILORED",
            "resume": {
                "jobDescription": "something the model made up",
                "professionalSummary": "Kafka expert",
            },
        }
    )
    resume = to_wire(empty_resume("Backend Engineer"))

    resp = client.post("/api/job-match", json={"jobDescription": "X", "resume": resume})

    assert resp.status_code == 200
    body = resp.json()
    assert body["tailoredText"] == "TAILORED"
    assert body["updatedResume"]["jobDescription"] == "X"
    assert body["updatedResume"]["professionalSummary"] == "Kafka expert"
    assert body["updatedResume"]["resumeTitle"] == "Backend Engineer"
    assert fake_model.calls[0]["operation"] == JOB_MATCH


def test_job_match_keeps_input_when_model_omits_resume(client, fake_model):
    fake_model.reply_json({"tailoredResumeText": "T"})
    resume = {"resumeTitle": "Mine", "targetCompany": "Acme"}

    body = client.post("/api/job-match", json={"jobDescription": "JD", "resume": resume}).json()

    assert body["updatedResume"]["targetCompany"] == "Acme"
    assert body["updatedResume"]["jobDescription"] == "JD"


def test_job_match_requires_description(client, fake_model):
    resp = client.post("/api/job-match", json={"resume": {}})
    assert resp.status_code == 400
    assert resp.json() == {"message": "jobDescription is required."}


@pytest.mark.parametrize("resume", ["", "abc", [], 0])
@pytest.mark.parametrize("path", ["/api/job-match", "/api/generate-resume"])
def test_non_object_resume_is_rejected(client, fake_model, path, resume):
    resp = client.post(path, json={"jobDescription": "JD", "resume": resume})
    assert resp.status_code == 400
    assert fake_model.calls == []


def test_export_docx_rejects_non_object_resume(client):
    resp = client.post("/api/export-docx", json={"resume": "abc"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "resume payload is required."}


def test_job_match_invalid_resume_is_500(client, fake_model):
    resp = client.post(
        "/api/job-match",
        json={"jobDescription": "JD", "resume": {"resumeSettings": {"colorScheme": "#abcdef"}}},
    )
    assert resp.status_code == 500
    assert fake_model.calls == []


# ---------- generate-resume ----------

def test_generate_resume_forces_requested_template(client, fake_model):
    fake_model.reply_json(
        {
            "formattedText": "JANE DOE",
            "resume": {
                "professionalSummary": "Polished",
                "resumeSettings": {"template": "chronological", "fontFamily": "Arial"},
            },
        }
    )
    resume = to_wire(empty_resume())
    resume["resumeSettings"]["fontFamily"] = "Times New Roman"

    resp = client.post("/api/generate-resume", json={"resume": resume, "template": "simple"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["formattedText"] == "JANE DOE"
    settings = body["updatedResume"]["resumeSettings"]
    assert settings["template"] == "simple"
    assert settings["fontFamily"] == "Times New Roman"
    assert body["updatedResume"]["professionalSummary"] == "Polished"
    assert fake_model.calls[0]["operation"] == LAYOUT_GENERATE
    assert "Template requested: SIMPLE." in fake_model.calls[0]["prompt"]


def test_generate_resume_defaults_to_resume_template(client, fake_model):
    fake_model.reply_json({"formattedText": "T", "resume": {}})
    resume = {"resumeSettings": {"template": "professional"}}

    body = client.post("/api/generate-resume", json={"resume": resume}).json()

    assert body["updatedResume"]["resumeSettings"]["template"] == "professional"


def test_generate_resume_requires_resume(client, fake_model):
    resp = client.post("/api/generate-resume", json={"template": "simple"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "resume payload is required."}


def test_generate_resume_rejects_unknown_template(client, fake_model):
    resp = client.post("/api/generate-resume", json={"resume": {}, "template": "fancy"})
    assert resp.status_code == 400
    assert fake_model.calls == []


# ---------- export ----------

def test_export_docx_returns_attachment(client):
    resume = to_wire(empty_resume("Backend Engineer"))
    resume["personalInformation"].update(firstName="Jane", lastName="Doe")

    resp = client.post("/api/export-docx", json={"resume": resume})

    assert resp.status_code == 200
    assert 'filename="Jane_Doe_Resume.docx"' in resp.headers["content-disposition"]
    assert zipfile.is_zipfile(io.BytesIO(resp.content))
