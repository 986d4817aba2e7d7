# backend/resume_schema.py
"""
Canonical resume document and the normalization pass that turns any
partial / untrusted payload (AI output, client body, stored document)
into a complete, valid ResumeDocument.

Contract: lenient on presence, strict on type.
  - missing keys (or null values) get their defaults
  - a present value of the wrong type, or an enum value outside its
    closed set, raises SchemaViolation
"""

from collections.abc import Mapping
from typing import Any, Dict, List, Literal, Optional, get_args, get_origin
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from errors import SchemaViolation


# ---------- closed enumerations ----------

SectionKey = Literal[
    "personalInformation",
    "professionalSummary",
    "workExperience",
    "education",
    "technicalSkills",
    "projects",
    "certifications",
    "publications",
    "openSource",
    "awards",
    "languages",
    "volunteerExperience",
    "professionalMemberships",
    "references",
]
TemplateOption = Literal["chronological", "simple", "professional"]
ColorScheme = Literal["#000000", "#111827", "#374151", "#4b5563"]
FontFamily = Literal["Arial", "Times New Roman", "Calibri"]
RelocationOption = Literal["Yes", "No", "Open"]
EmploymentType = Literal["Full-time", "Part-time", "Contract", "Internship", "Freelance"]
DegreeType = Literal["Bachelor's", "Master's", "PhD", "Associate", "Bootcamp", "Certificate"]
ContributionType = Literal["Maintainer", "Contributor"]
LanguageLevel = Literal["Native", "Fluent", "Professional", "Intermediate", "Basic"]

SECTION_KEYS = get_args(SectionKey)
TEMPLATE_OPTIONS = get_args(TemplateOption)
COLOR_SCHEMES = get_args(ColorScheme)
FONT_FAMILIES = get_args(FontFamily)
RELOCATION_OPTIONS = get_args(RelocationOption)
EMPLOYMENT_TYPES = get_args(EmploymentType)
DEGREE_TYPES = get_args(DegreeType)
CONTRIBUTION_TYPES = get_args(ContributionType)
LANGUAGE_LEVELS = get_args(LanguageLevel)

DEFAULT_RESUME_TITLE = "New Resume"


def new_item_id() -> str:
    return str(uuid4())


# ---------- base models ----------

class _ResumeModel(BaseModel):
    """
    Shared behaviour for every object in the document:

    - wire keys are camelCase, python attributes snake_case
    - unknown keys are dropped
    - null values count as "absent" and fall back to the field default
    - a list-typed field whose value is not a list falls back to []
      (sequences are replaced wholesale, never merged element-wise)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_absent(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            # let pydantic report the wrong shape
            return data

        cleaned = {k: v for k, v in data.items() if v is not None}
        for name, field in cls.model_fields.items():
            if get_origin(field.annotation) is not list:
                continue
            for key in {name, field.alias or name}:
                if key in cleaned and not isinstance(cleaned[key], list):
                    del cleaned[key]
        return cleaned


class _Item(_ResumeModel):
    """An element of an identified section. `id` is stable once assigned."""

    id: StrictStr = Field(default_factory=new_item_id)

    @field_validator("id", mode="before")
    @classmethod
    def _assign_missing_id(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return new_item_id()
        return value


# ---------- section items ----------

class WorkExperienceItem(_Item):
    job_title: StrictStr = ""
    company_name: StrictStr = ""
    company_location: StrictStr = ""
    employment_type: EmploymentType = "Full-time"
    start_date: StrictStr = ""
    end_date: StrictStr = ""
    currently_working: StrictBool = False
    responsibilities: List[StrictStr] = Field(default_factory=list)
    achievements: List[StrictStr] = Field(default_factory=list)
    technologies: List[StrictStr] = Field(default_factory=list)


class EducationItem(_Item):
    degree_type: DegreeType = "Bachelor's"
    field_of_study: StrictStr = ""
    institution_name: StrictStr = ""
    institution_location: StrictStr = ""
    start_date: StrictStr = ""
    graduation_date: StrictStr = ""
    gpa: StrictStr = ""
    coursework: StrictStr = ""
    honors: StrictStr = ""


class ProjectItem(_Item):
    project_name: StrictStr = ""
    description: StrictStr = ""
    role: StrictStr = ""
    technologies: List[StrictStr] = Field(default_factory=list)
    project_url: StrictStr = ""
    github_repo: StrictStr = ""
    start_date: StrictStr = ""
    end_date: StrictStr = ""
    achievements: List[StrictStr] = Field(default_factory=list)


class CertificationItem(_Item):
    certification_name: StrictStr = ""
    issuing_organization: StrictStr = ""
    issue_date: StrictStr = ""
    expiration_date: StrictStr = ""
    credential_id: StrictStr = ""
    credential_url: StrictStr = ""


class PublicationItem(_Item):
    title: StrictStr = ""
    co_authors: StrictStr = ""
    date: StrictStr = ""
    publisher: StrictStr = ""
    url: StrictStr = ""


class OpenSourceItem(_Item):
    project_name: StrictStr = ""
    repo_url: StrictStr = ""
    contribution_type: ContributionType = "Contributor"
    description: StrictStr = ""


class AwardItem(_Item):
    award_name: StrictStr = ""
    organization: StrictStr = ""
    date: StrictStr = ""
    description: StrictStr = ""


class LanguageItem(_Item):
    language: StrictStr = ""
    proficiency: LanguageLevel = "Professional"


class VolunteerItem(_Item):
    organization: StrictStr = ""
    role: StrictStr = ""
    start_date: StrictStr = ""
    end_date: StrictStr = ""
    description: StrictStr = ""


class ReferenceContact(_Item):
    name: StrictStr = ""
    title: StrictStr = ""
    company: StrictStr = ""
    email: StrictStr = ""
    phone: StrictStr = ""


# ---------- nested objects (merged key-by-key over their defaults) ----------

class PersonalInformation(_ResumeModel):
    first_name: StrictStr = ""
    last_name: StrictStr = ""
    middle_name: StrictStr = ""
    preferred_name: StrictStr = ""
    email: StrictStr = ""
    phone_number: StrictStr = ""
    linkedin_url: StrictStr = ""
    github_url: StrictStr = ""
    portfolio_url: StrictStr = ""
    location: StrictStr = ""
    willing_to_relocate: RelocationOption = "Open"


class TechnicalSkills(_ResumeModel):
    programming_languages: List[StrictStr] = Field(default_factory=list)
    frameworks_libraries: List[StrictStr] = Field(default_factory=list)
    databases: List[StrictStr] = Field(default_factory=list)
    cloud_platforms: List[StrictStr] = Field(default_factory=list)
    dev_ops_tools: List[StrictStr] = Field(default_factory=list)
    development_tools: List[StrictStr] = Field(default_factory=list)
    methodologies: List[StrictStr] = Field(default_factory=list)
    other_skills: List[StrictStr] = Field(default_factory=list)


class References(_ResumeModel):
    available_upon_request: StrictBool = True
    contacts: List[ReferenceContact] = Field(default_factory=list)


def default_section_order() -> List[str]:
    return list(SECTION_KEYS)


def default_sections_visibility() -> Dict[str, bool]:
    return {key: True for key in SECTION_KEYS}


class ResumeSettings(_ResumeModel):
    template: TemplateOption = "chronological"
    color_scheme: ColorScheme = "#000000"
    font_family: FontFamily = "Calibri"
    section_order: List[SectionKey] = Field(default_factory=default_section_order)
    sections_visibility: Dict[SectionKey, StrictBool] = Field(
        default_factory=default_sections_visibility
    )

    @model_validator(mode="before")
    @classmethod
    def _complete_section_layout(cls, data: Any) -> Any:
        """
        sectionOrder must stay a permutation of all keys and
        sectionsVisibility must stay total: anything partial is thrown
        away wholesale (never padded). Foreign keys are a type error.
        """
        if not isinstance(data, Mapping):
            return data
        data = dict(data)

        order = data.get("sectionOrder", data.get("section_order"))
        if isinstance(order, list):
            foreign = [key for key in order if key not in SECTION_KEYS]
            if foreign:
                raise ValueError(f"sectionOrder has unknown section key(s): {foreign}")
            if sorted(order) != sorted(SECTION_KEYS):
                data.pop("sectionOrder", None)
                data.pop("section_order", None)

        visibility = data.get("sectionsVisibility", data.get("sections_visibility"))
        if isinstance(visibility, Mapping):
            foreign = [key for key in visibility if key not in SECTION_KEYS]
            if foreign:
                raise ValueError(f"sectionsVisibility has unknown section key(s): {foreign}")
            if set(visibility) != set(SECTION_KEYS):
                data.pop("sectionsVisibility", None)
                data.pop("sections_visibility", None)
        elif visibility is not None:
            data.pop("sectionsVisibility", None)
            data.pop("sections_visibility", None)

        return data

    @model_validator(mode="after")
    def _personal_information_always_visible(self) -> "ResumeSettings":
        self.sections_visibility["personalInformation"] = True
        return self


# ---------- the document ----------

class ResumeDocument(_ResumeModel):
    resume_id: Optional[StrictStr] = None
    resume_title: StrictStr = Field(default=DEFAULT_RESUME_TITLE, min_length=1)
    target_role: StrictStr = ""
    target_company: StrictStr = ""
    job_description: StrictStr = ""
    tailored_resume_text: StrictStr = ""
    personal_information: PersonalInformation = Field(default_factory=PersonalInformation)
    professional_summary: StrictStr = ""
    work_experience: List[WorkExperienceItem] = Field(default_factory=list)
    education: List[EducationItem] = Field(default_factory=list)
    technical_skills: TechnicalSkills = Field(default_factory=TechnicalSkills)
    projects: List[ProjectItem] = Field(default_factory=list)
    certifications: List[CertificationItem] = Field(default_factory=list)
    publications: List[PublicationItem] = Field(default_factory=list)
    open_source: List[OpenSourceItem] = Field(default_factory=list)
    awards: List[AwardItem] = Field(default_factory=list)
    languages: List[LanguageItem] = Field(default_factory=list)
    volunteer_experience: List[VolunteerItem] = Field(default_factory=list)
    professional_memberships: List[StrictStr] = Field(default_factory=list)
    references: References = Field(default_factory=References)
    resume_settings: ResumeSettings = Field(default_factory=ResumeSettings)

    @field_validator("resume_title", mode="before")
    @classmethod
    def _blank_title_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return DEFAULT_RESUME_TITLE
        return value


# ---------- public helpers ----------

def empty_resume(title: Optional[str] = None) -> ResumeDocument:
    """The static default document (optionally with a title)."""
    doc = ResumeDocument()
    if title and title.strip():
        doc.resume_title = title.strip()
    return doc


def to_wire(doc: ResumeDocument) -> Dict[str, Any]:
    """camelCase JSON-ready dict, the shape clients and the store see."""
    return doc.model_dump(by_alias=True, exclude_none=True)


def _describe_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors()[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    extra = len(exc.errors()) - len(parts)
    if extra > 0:
        parts.append(f"(+{extra} more)")
    return "Resume does not match the schema: " + "; ".join(parts)


def normalize_resume(candidate: Any = None) -> ResumeDocument:
    """
    Merge `candidate` over the default document and validate the result.

    Never fails because something is missing. Raises SchemaViolation when a
    present value has the wrong type/shape or an enum value is outside its
    set. Idempotent: normalize_resume(to_wire(normalize_resume(x))) equals
    normalize_resume(x).
    """
    if candidate is None:
        candidate = {}
    elif isinstance(candidate, ResumeDocument):
        candidate = to_wire(candidate)

    if not isinstance(candidate, Mapping):
        raise SchemaViolation(
            f"Resume must be a JSON object, got {type(candidate).__name__}."
        )

    try:
        return ResumeDocument.model_validate(dict(candidate))
    except PydanticValidationError as exc:
        raise SchemaViolation(_describe_validation_error(exc)) from exc
