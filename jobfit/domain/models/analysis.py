"""Domain models specific to job-match analysis.

Covers the caller-side inputs (candidate profile, job posting), the parsed
analysis result and the record kept by the persistence collaborator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .common import RecordId, UserId

MAX_LIST_ITEMS = 5
MAX_NARRATIVE_LENGTH = 2000
DEFAULT_MATCH_SCORE = 50


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Returns the first present key, so both snake_case and camelCase input work."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


@dataclass
class CandidateProfile:
    """The requester context: who is being matched against a posting."""
    name: str = ""
    location: str = ""
    current_title: str = ""
    current_company: str = ""
    experience_years: float = 0
    industry: str = ""
    skills: List[str] = field(default_factory=list)
    soft_skills: List[str] = field(default_factory=list)
    education: List[str] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    desired_roles: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateProfile":
        """Builds a profile from a flat snake_case dict or the nested
        ``basicInfo``/``professionalInfo``/``otherInfo`` document shape."""
        basic = data.get("basicInfo") or {}
        professional = data.get("professionalInfo") or {}
        other = data.get("otherInfo") or {}
        preferences = data.get("jobPreferences") or {}

        education = _pick(other, "education", default=None)
        if education is None:
            education = data.get("education")
        certifications = data.get("certifications")
        if isinstance(education, Mapping):
            # Document shape: {"degree": ..., "university": ..., "certifications": [...]}
            certifications = certifications or education.get("certifications")
            parts = [str(education[k]) for k in ("degree", "university", "graduationYear") if education.get(k)]
            education = [", ".join(parts)] if parts else []

        return cls(
            name=str(_pick(data, "name", default=_pick(basic, "username", default=""))),
            location=str(_pick(data, "location", default=_pick(basic, "location", default=""))),
            current_title=str(_pick(data, "current_title", default=_pick(professional, "currentTitle", default=""))),
            current_company=str(_pick(data, "current_company", default=_pick(professional, "currentCompany", default=""))),
            experience_years=_pick(data, "experience_years", default=_pick(professional, "experienceYears", default=0)),
            industry=str(_pick(data, "industry", default=_pick(professional, "industry", default=""))),
            skills=_as_str_list(_pick(data, "skills", default=_pick(other, "skills"))),
            soft_skills=_as_str_list(_pick(data, "soft_skills", default=_pick(other, "softSkills"))),
            education=_as_str_list(education),
            certifications=_as_str_list(certifications),
            desired_roles=_as_str_list(_pick(data, "desired_roles", default=_pick(preferences, "desiredRoles"))),
        )


@dataclass
class JobPosting:
    """The request payload: the posting the candidate is matched against."""
    title: str = ""
    description: str = ""
    requirements: str = ""
    company: str = ""
    location: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobPosting":
        requirements = _pick(data, "requirements", default="")
        if not isinstance(requirements, str):
            requirements = "\n".join(_as_str_list(requirements))
        return cls(
            title=str(_pick(data, "title", "job_title", "jobTitle", default="")),
            description=str(_pick(data, "description", "job_description", "jobDescription", default="")),
            requirements=requirements,
            company=str(_pick(data, "company", default="")),
            location=str(_pick(data, "location", default="")),
            url=str(_pick(data, "url", "job_url", "jobUrl", default="")),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Structured outcome of one job-match analysis.

    ``degraded`` is set when the completion could not be fully parsed and
    defaults were substituted for the missing sections.
    """
    match_score: int
    strengths: Tuple[str, ...] = ()
    improvements: Tuple[str, ...] = ()
    narrative: str = ""
    degraded: bool = False

    def __post_init__(self):
        # Normalize so the invariants hold no matter who constructs the result
        object.__setattr__(self, "match_score", max(0, min(100, int(self.match_score))))
        object.__setattr__(self, "strengths", tuple(self.strengths)[:MAX_LIST_ITEMS])
        object.__setattr__(self, "improvements", tuple(self.improvements)[:MAX_LIST_ITEMS])
        object.__setattr__(self, "narrative", self.narrative[:MAX_NARRATIVE_LENGTH])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_score": self.match_score,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "narrative": self.narrative,
            "degraded": self.degraded,
        }


@dataclass
class MatchRecord:
    """A finalized (or failed) analysis as stored by the persistence collaborator."""
    user_id: UserId
    job: JobPosting
    status: str # 'analyzed' or 'error'
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    record_id: Optional[RecordId] = None
