import io

from docx import Document

from docx_export import build_filename, build_resume_docx, render_resume_text
from resume_schema import SECTION_KEYS, normalize_resume


def _resume(**settings):
    return normalize_resume(
        {
            "resumeTitle": "Backend Engineer",
            "personalInformation": {
                "firstName": "Jane",
                "lastName": "Doe",
                "email": "jane@example.com",
                "location": "Berlin",
            },
            "professionalSummary": "Builds reliable services.",
            "workExperience": [
                {
                    "jobTitle": "Engineer",
                    "companyName": "Initech",
                    "startDate": "2020-01",
                    "currentlyWorking": True,
                    "responsibilities": ["Ran the TPS pipeline"],
                }
            ],
            "technicalSkills": {"programmingLanguages": ["Python", "Go"]},
            "resumeSettings": settings,
        }
    )


def test_text_follows_section_order():
    order = list(SECTION_KEYS)
    order.remove("technicalSkills")
    order.insert(1, "technicalSkills")
    text = render_resume_text(_resume(sectionOrder=order))

    assert text.startswith("Jane Doe\njane@example.com | Berlin")
    assert text.index("TECHNICAL SKILLS") < text.index("PROFESSIONAL SUMMARY")
    assert "2020-01 - Present" in text
    assert "• Ran the TPS pipeline" in text
    assert "Languages: Python, Go" in text


def test_hidden_and_empty_sections_are_skipped():
    visibility = {k: True for k in SECTION_KEYS}
    visibility["workExperience"] = False
    text = render_resume_text(_resume(sectionsVisibility=visibility))

    assert "WORK EXPERIENCE" not in text
    assert "AWARDS" not in text
    # references default to "available upon request"
    assert "REFERENCES\nAvailable upon request" in text


def test_docx_uses_font_and_sections():
    payload = build_resume_docx(_resume(fontFamily="Arial", colorScheme="#374151"))
    doc = Document(io.BytesIO(payload))

    texts = [p.text for p in doc.paragraphs]
    assert texts[0] == "Jane Doe"
    assert "PROFESSIONAL SUMMARY" in texts
    assert doc.styles["Normal"].font.name == "Arial"
    assert str(doc.paragraphs[0].runs[0].font.color.rgb) == "374151"


def test_filename_from_name_or_title():
    assert build_filename(_resume()) == "Jane_Doe_Resume.docx"
    assert build_filename(normalize_resume({"resumeTitle": "Data Eng"})) == "Data_Eng_Resume.docx"
