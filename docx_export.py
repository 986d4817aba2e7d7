# backend/docx_export.py
"""
Print-ready export of a ResumeDocument.

render_resume_text() turns the document into section blocks of plain
lines (honouring sectionOrder / sectionsVisibility); build_resume_docx()
lays those blocks out with python-docx in the document's font and accent
colour.
"""

import re
from io import BytesIO
from typing import Callable, Dict, List, Tuple

from docx import Document
from docx.shared import Inches, Pt, RGBColor

from resume_schema import ResumeDocument

SECTION_TITLES: Dict[str, str] = {
    "professionalSummary": "Professional Summary",
    "workExperience": "Work Experience",
    "education": "Education",
    "technicalSkills": "Technical Skills",
    "projects": "Projects",
    "certifications": "Certifications",
    "publications": "Publications",
    "openSource": "Open Source",
    "awards": "Awards",
    "languages": "Languages",
    "volunteerExperience": "Volunteer Experience",
    "professionalMemberships": "Professional Memberships",
    "references": "References",
}

BULLET = "•"


def _join(parts: List[str], sep: str = " | ") -> str:
    return sep.join(p.strip() for p in parts if p and p.strip())


def _dates(start: str, end: str, current: bool = False) -> str:
    end = "Present" if current else end
    return _join([start, end], " - ")


def _bullets(items: List[str]) -> List[str]:
    return [f"{BULLET} {x.strip()}" for x in items if x and x.strip()]


# ---------- per-section line builders ----------

def _summary_lines(doc: ResumeDocument) -> List[str]:
    return [doc.professional_summary.strip()] if doc.professional_summary.strip() else []


def _work_lines(doc: ResumeDocument) -> List[str]:
    lines: List[str] = []
    for role in doc.work_experience:
        lines.append(_join([role.job_title, role.company_name, role.company_location]))
        lines.append(_join([role.employment_type, _dates(role.start_date, role.end_date, role.currently_working)]))
        lines.extend(_bullets(role.responsibilities))
        lines.extend(_bullets(role.achievements))
        if role.technologies:
            lines.append("Technologies: " + ", ".join(role.technologies))
    return lines


def _education_lines(doc: ResumeDocument) -> List[str]:
    lines: List[str] = []
    for item in doc.education:
        degree = f"{item.degree_type} in {item.field_of_study}" if item.field_of_study else item.degree_type
        lines.append(_join([degree, item.institution_name, item.institution_location]))
        lines.append(_join([_dates(item.start_date, item.graduation_date), f"GPA {item.gpa}" if item.gpa else ""]))
        if item.honors:
            lines.append(f"Honors: {item.honors}")
        if item.coursework:
            lines.append(f"Coursework: {item.coursework}")
    return lines


def _skills_lines(doc: ResumeDocument) -> List[str]:
    skills = doc.technical_skills
    labelled = [
        ("Languages", skills.programming_languages),
        ("Frameworks & Libraries", skills.frameworks_libraries),
        ("Databases", skills.databases),
        ("Cloud", skills.cloud_platforms),
        ("DevOps", skills.dev_ops_tools),
        ("Tools", skills.development_tools),
        ("Methodologies", skills.methodologies),
        ("Other", skills.other_skills),
    ]
    return [f"{label}: {', '.join(values)}" for label, values in labelled if values]


def _project_lines(doc: ResumeDocument) -> List[str]:
    lines: List[str] = []
    for p in doc.projects:
        lines.append(_join([p.project_name, p.role, _dates(p.start_date, p.end_date)]))
        if p.description:
            lines.append(p.description)
        lines.extend(_bullets(p.achievements))
        if p.technologies:
            lines.append("Technologies: " + ", ".join(p.technologies))
        links = _join([p.project_url, p.github_repo])
        if links:
            lines.append(links)
    return lines


def _certification_lines(doc: ResumeDocument) -> List[str]:
    return [
        _join([c.certification_name, c.issuing_organization, c.issue_date, c.credential_id])
        for c in doc.certifications
    ]


def _publication_lines(doc: ResumeDocument) -> List[str]:
    return [_join([p.title, p.co_authors, p.publisher, p.date, p.url]) for p in doc.publications]


def _open_source_lines(doc: ResumeDocument) -> List[str]:
    return [
        _join([f"{o.project_name} ({o.contribution_type})", o.repo_url, o.description])
        for o in doc.open_source
    ]


def _award_lines(doc: ResumeDocument) -> List[str]:
    return [_join([a.award_name, a.organization, a.date, a.description]) for a in doc.awards]


def _language_lines(doc: ResumeDocument) -> List[str]:
    return [f"{lang.language} - {lang.proficiency}" for lang in doc.languages if lang.language]


def _volunteer_lines(doc: ResumeDocument) -> List[str]:
    return [
        _join([v.role, v.organization, _dates(v.start_date, v.end_date), v.description])
        for v in doc.volunteer_experience
    ]


def _membership_lines(doc: ResumeDocument) -> List[str]:
    return _bullets(doc.professional_memberships)


def _reference_lines(doc: ResumeDocument) -> List[str]:
    if doc.references.available_upon_request:
        return ["Available upon request"]
    return [_join([c.name, c.title, c.company, c.email, c.phone]) for c in doc.references.contacts]


SECTION_BUILDERS: Dict[str, Callable[[ResumeDocument], List[str]]] = {
    "professionalSummary": _summary_lines,
    "workExperience": _work_lines,
    "education": _education_lines,
    "technicalSkills": _skills_lines,
    "projects": _project_lines,
    "certifications": _certification_lines,
    "publications": _publication_lines,
    "openSource": _open_source_lines,
    "awards": _award_lines,
    "languages": _language_lines,
    "volunteerExperience": _volunteer_lines,
    "professionalMemberships": _membership_lines,
    "references": _reference_lines,
}


def header_lines(doc: ResumeDocument) -> List[str]:
    info = doc.personal_information
    name = _join([info.first_name, info.middle_name, info.last_name], " ")
    contact = _join([info.email, info.phone_number, info.location])
    links = _join([info.linkedin_url, info.github_url, info.portfolio_url])
    return [line for line in (name, contact, links) if line]


def resume_sections(doc: ResumeDocument) -> List[Tuple[str, List[str]]]:
    """(title, lines) for every visible, non-empty section in sectionOrder."""
    settings = doc.resume_settings
    sections: List[Tuple[str, List[str]]] = []
    for key in settings.section_order:
        if key == "personalInformation" or not settings.sections_visibility.get(key, True):
            continue
        lines = [line for line in SECTION_BUILDERS[key](doc) if line]
        if lines:
            sections.append((SECTION_TITLES[key], lines))
    return sections


def render_resume_text(doc: ResumeDocument) -> str:
    blocks = ["\n".join(header_lines(doc))]
    for title, lines in resume_sections(doc):
        blocks.append("\n".join([title.upper()] + lines))
    return "\n\n".join(b for b in blocks if b).strip() + "\n"


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color.lstrip("#").upper())


def build_resume_docx(doc: ResumeDocument) -> bytes:
    settings = doc.resume_settings
    accent = _rgb(settings.color_scheme)

    out = Document()

    for sec in out.sections:
        sec.top_margin = Inches(1)
        sec.bottom_margin = Inches(1)
        sec.left_margin = Inches(1)
        sec.right_margin = Inches(1)

    style = out.styles["Normal"]
    style.font.name = settings.font_family
    style.font.size = Pt(11)
    pf = style.paragraph_format
    pf.space_before = Pt(0)
    pf.space_after = Pt(2)
    pf.line_spacing = 1.15

    # ---- header: name + contact lines ----
    header = header_lines(doc)
    if header:
        name_p = out.add_paragraph()
        name_run = name_p.add_run(header[0])
        name_run.bold = True
        name_run.font.size = Pt(18)
        name_run.font.color.rgb = accent
        for line in header[1:]:
            p = out.add_paragraph()
            run = p.add_run(line)
            run.font.size = Pt(10)

    # ---- body sections ----
    for title, lines in resume_sections(doc):
        heading = out.add_paragraph()
        heading.paragraph_format.space_before = Pt(10)
        run = heading.add_run(title.upper())
        run.bold = True
        run.font.size = Pt(12)
        run.font.color.rgb = accent
        for line in lines:
            out.add_paragraph(line)

    buf = BytesIO()
    out.save(buf)
    return buf.getvalue()


def _clean_slug(s: str, fallback: str) -> str:
    s = re.sub(r"[^A-Za-z0-9]+", "_", (s or "").strip()).strip("_")
    return s or fallback


def build_filename(doc: ResumeDocument) -> str:
    """First_Last_Resume.docx, falling back to the resume title."""
    info = doc.personal_information
    name = _clean_slug(f"{info.first_name} {info.last_name}", "")
    if not name:
        name = _clean_slug(doc.resume_title, "Resume")
    return f"{name}_Resume.docx"
