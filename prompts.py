# backend/prompts.py
"""
Prompt text for the four model-backed operations.

The model never sees our validator, so every prompt restates the document
shape and the closed enumerations (template / colour / font whitelists)
in plain language. Output of these builders is free text; validation
happens later in resume_schema.normalize_resume.
"""

import json
from typing import Any, Dict, Optional

from resume_schema import (
    COLOR_SCHEMES,
    CONTRIBUTION_TYPES,
    DEGREE_TYPES,
    EMPLOYMENT_TYPES,
    FONT_FAMILIES,
    LANGUAGE_LEVELS,
    RELOCATION_OPTIONS,
    SECTION_KEYS,
    TEMPLATE_OPTIONS,
    ResumeDocument,
    to_wire,
)

VISION_PARSE = "visionParse"
TEXT_PARSE = "textParse"
JOB_MATCH = "jobMatch"
LAYOUT_GENERATE = "layoutGenerate"

OPERATIONS = (VISION_PARSE, TEXT_PARSE, JOB_MATCH, LAYOUT_GENERATE)


def _one_of(values) -> str:
    return " | ".join(f'"{v}"' for v in values)


RESUME_SCHEMA_PROMPT = f"""
Return valid JSON that matches this shape:
{{
  "resume": {{
    "resumeTitle": string,
    "targetRole": string,
    "targetCompany": string,
    "jobDescription": string,
    "tailoredResumeText": string,
    "personalInformation": {{
      "firstName": string,
      "lastName": string,
      "middleName": string,
      "preferredName": string,
      "email": string,
      "phoneNumber": string,
      "linkedinUrl": string,
      "githubUrl": string,
      "portfolioUrl": string,
      "location": string,
      "willingToRelocate": {_one_of(RELOCATION_OPTIONS)}
    }},
    "professionalSummary": string,
    "workExperience": [{{ "id": string, "jobTitle": string, "companyName": string, "companyLocation": string, "employmentType": {_one_of(EMPLOYMENT_TYPES)}, "startDate": string, "endDate": string, "currentlyWorking": boolean, "responsibilities": string[], "achievements": string[], "technologies": string[] }}],
    "education": [{{ "id": string, "degreeType": {_one_of(DEGREE_TYPES)}, "fieldOfStudy": string, "institutionName": string, "institutionLocation": string, "startDate": string, "graduationDate": string, "gpa": string, "coursework": string, "honors": string }}],
    "technicalSkills": {{ "programmingLanguages": string[], "frameworksLibraries": string[], "databases": string[], "cloudPlatforms": string[], "devOpsTools": string[], "developmentTools": string[], "methodologies": string[], "otherSkills": string[] }},
    "projects": [{{ "id": string, "projectName": string, "description": string, "role": string, "technologies": string[], "projectUrl": string, "githubRepo": string, "startDate": string, "endDate": string, "achievements": string[] }}],
    "certifications": [{{ "id": string, "certificationName": string, "issuingOrganization": string, "issueDate": string, "expirationDate": string, "credentialId": string, "credentialUrl": string }}],
    "publications": [{{ "id": string, "title": string, "coAuthors": string, "date": string, "publisher": string, "url": string }}],
    "openSource": [{{ "id": string, "projectName": string, "repoUrl": string, "contributionType": {_one_of(CONTRIBUTION_TYPES)}, "description": string }}],
    "awards": [{{ "id": string, "awardName": string, "organization": string, "date": string, "description": string }}],
    "languages": [{{ "id": string, "language": string, "proficiency": {_one_of(LANGUAGE_LEVELS)} }}],
    "volunteerExperience": [{{ "id": string, "organization": string, "role": string, "startDate": string, "endDate": string, "description": string }}],
    "professionalMemberships": string[],
    "references": {{
      "availableUponRequest": boolean,
      "contacts": [{{ "id": string, "name": string, "title": string, "company": string, "email": string, "phone": string }}]
    }},
    "resumeSettings": {{
      "template": {_one_of(TEMPLATE_OPTIONS)},
      "colorScheme": {_one_of(COLOR_SCHEMES)},
      "fontFamily": {_one_of(FONT_FAMILIES)},
      "sectionOrder": ResumeSectionKey[],
      "sectionsVisibility": Record<ResumeSectionKey, boolean>
    }}
  }}
}}
Where ResumeSectionKey is one of: {', '.join(SECTION_KEYS)}.
- Populate arrays even when empty.
- sectionOrder must list every ResumeSectionKey exactly once; sectionsVisibility must have every key.
- Keep existing "id" values unchanged; leave "id" empty for new entries.
- Responsibilities, achievements, and key features must be string arrays (each entry is a bullet).
- Dates must be "YYYY-MM" or "Present".
- Never invent experience; only reorganize what exists.
- Use sentence case text (no markdown, HTML, or LaTeX).
""".strip()

FORMATTING_CONSTRAINTS = (
    "ATS-safe formatting only: "
    f"template must be one of {', '.join(TEMPLATE_OPTIONS)}; "
    f"colors must stay grayscale ({', '.join(COLOR_SCHEMES)}); "
    f"fonts limited to {', '.join(FONT_FAMILIES)}. "
    "No icons, tables, images, or colored elements."
)

TEMPLATE_GUIDANCE: Dict[str, str] = {
    "chronological": (
        "Start with name + contact, then professional summary, work experience "
        "(reverse chronological), education, skills, then optional sections. "
        "Use bold headings and bullet points."
    ),
    "simple": (
        "Use a single column minimalist layout. Headings should be uppercase text "
        "with blank line dividers. Avoid extra separators."
    ),
    "professional": (
        "Use balanced spacing, subtle section dividers, and emphasize readability "
        "for executives."
    ),
}

SYSTEM_MESSAGES: Dict[str, str] = {
    VISION_PARSE: (
        "You are an expert resume parser. Return strict JSON that matches the "
        "provided schema. Do not include markdown or commentary."
    ),
    TEXT_PARSE: (
        "You convert raw resume text into normalized JSON. Never add markdown, "
        "only JSON in the response."
    ),
    JOB_MATCH: (
        "You are an ATS optimization assistant. Blend keywords naturally, respect "
        "truthful experience, and respond with JSON only."
    ),
    LAYOUT_GENERATE: (
        "You are a professional resume formatter. Produce JSON with a formattedText "
        "property and updated resume payload."
    ),
}


def _resume_json(resume: Any) -> str:
    if isinstance(resume, ResumeDocument):
        resume = to_wire(resume)
    return json.dumps(resume, ensure_ascii=False)


def _vision_parse_prompt() -> str:
    return (
        f"{RESUME_SCHEMA_PROMPT}\n"
        f"{FORMATTING_CONSTRAINTS}\n\n"
        "Parse the attached resume (PDF or image) and fill the JSON. Follow "
        "reverse-chronological ordering by default and copy bullet language "
        "exactly as shown when possible."
    )


def _text_parse_prompt(text: str) -> str:
    return (
        f"{RESUME_SCHEMA_PROMPT}\n"
        f"{FORMATTING_CONSTRAINTS}\n\n"
        "Source resume text:\n"
        '"""\n'
        f"{text}\n"
        '"""\n'
        "Normalize this resume into structured JSON."
    )


def _job_match_prompt(job_description: str, resume: Any) -> str:
    return (
        f"{RESUME_SCHEMA_PROMPT}\n"
        f"{FORMATTING_CONSTRAINTS}\n\n"
        "Job description:\n"
        '"""\n'
        f"{job_description}\n"
        '"""\n'
        "Existing resume JSON:\n"
        f"{_resume_json(resume)}\n\n"
        "Objectives:\n"
        "1. Identify skills, responsibilities, and achievements from the resume that align with the job.\n"
        "2. Insert relevant keywords naturally without exaggerating experience.\n"
        "3. Update professionalSummary, workExperience bullets, technicalSkills, and projects so they speak to the role.\n"
        "4. Update resume.jobDescription with the provided posting.\n\n"
        "Return JSON shaped as:\n"
        "{\n"
        '  "tailoredResumeText": "Plain text resume with headings and bullet symbols",\n'
        '  "resume": ResumeData\n'
        "}\n"
    )


def _layout_prompt(template: str, resume: Any) -> str:
    if template not in TEMPLATE_GUIDANCE:
        raise ValueError(f"Unknown template: {template!r}")
    return (
        f"{RESUME_SCHEMA_PROMPT}\n\n"
        f"Template requested: {template.upper()}.\n"
        f"Guidance: {TEMPLATE_GUIDANCE[template]}\n"
        f"{FORMATTING_CONSTRAINTS}\n\n"
        "Existing resume JSON:\n"
        f"{_resume_json(resume)}\n\n"
        "Return JSON:\n"
        "{\n"
        '  "formattedText": "Plain text print-ready resume following the template instructions",\n'
        '  "resume": ResumeData\n'
        "}\n"
    )


def build_prompt(
    operation: str,
    text: Optional[str] = None,
    job_description: Optional[str] = None,
    resume: Any = None,
    template: Optional[str] = None,
) -> str:
    """
    Render the user prompt for one operation.

    - visionParse:    no inputs (the file travels as an attachment)
    - textParse:      text
    - jobMatch:       job_description, resume
    - layoutGenerate: template, resume
    """
    if operation == VISION_PARSE:
        return _vision_parse_prompt()
    if operation == TEXT_PARSE:
        return _text_parse_prompt(text or "")
    if operation == JOB_MATCH:
        return _job_match_prompt(job_description or "", resume or {})
    if operation == LAYOUT_GENERATE:
        return _layout_prompt(template or "chronological", resume or {})
    raise ValueError(f"Unknown prompt operation: {operation!r}")


def system_message(operation: str) -> str:
    try:
        return SYSTEM_MESSAGES[operation]
    except KeyError:
        raise ValueError(f"Unknown prompt operation: {operation!r}") from None
