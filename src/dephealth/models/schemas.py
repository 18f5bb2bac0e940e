"""Pydantic models for repository documents and assessment results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# --- Repository Document Models ---


class LicenseInfo(BaseModel):
    """License detected on a repository."""

    spdx_id: str | None = None
    name: str | None = None


class RepositoryOverview(BaseModel):
    """Basic repository data.

    Every field is optional: a key missing from the collected overview
    stays None so scoring can tell "not collected" apart from zero.
    """

    stars: int | None = None
    forks: int | None = None
    watchers: int | None = None
    open_issues_count: int | None = None
    size: int | None = None
    language: str | None = None
    license: LicenseInfo | None = None
    archived: bool = False
    disabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    has_sponsors: bool = False
    advanced_security: bool = False


class Contributor(BaseModel):
    """Contributor with weekly commit counts (oldest week first)."""

    login: str = "unknown"
    total: int = 0
    weekly_commits: list[int] = Field(default_factory=list)


class Commit(BaseModel):
    """A sampled commit."""

    authored_at: datetime | None = None
    verified: bool = False


class IssueState(str, Enum):
    """Issue states reported by the hosting platform."""

    OPEN = "open"
    CLOSED = "closed"


class Issue(BaseModel):
    """Issue or pull request."""

    state: IssueState = IssueState.OPEN
    is_pull_request: bool = False
    created_at: datetime | None = None
    closed_at: datetime | None = None


class CommunityProfile(BaseModel):
    """Presence of community health files."""

    has_readme: bool = False
    has_contributing: bool = False
    has_code_of_conduct: bool = False
    has_license: bool = False
    has_security_policy: bool = False
    health_percentage: int = 0


class Release(BaseModel):
    """Published release."""

    tag: str | None = None
    published_at: datetime | None = None
    prerelease: bool = False


class ScorecardCheck(BaseModel):
    """Single OpenSSF Scorecard check result (-1 means inconclusive)."""

    name: str
    score: int
    reason: str = ""
    details: list[str] = Field(default_factory=list)


class ScorecardReport(BaseModel):
    """OpenSSF Scorecard report for a repository."""

    score: float
    date: str | None = None
    checks: list[ScorecardCheck] = Field(default_factory=list)


class RepositoryDocument(BaseModel):
    """All facets collected for one repository."""

    name: str
    overview: RepositoryOverview | None = None
    contributors: list[Contributor] | None = None
    commits: list[Commit] | None = None
    issues: list[Issue] | None = None
    community: CommunityProfile | None = None
    releases: list[Release] | None = None
    scorecard: ScorecardReport | None = None


# --- Metrics Models ---


class TopContributor(BaseModel):
    """Contributor ranked by total commits."""

    login: str
    commits: int


class CommunityHealth(BaseModel):
    """Community file flags carried into the metrics record."""

    has_readme: bool = False
    has_contributing: bool = False
    has_code_of_conduct: bool = False
    has_license: bool = False
    has_security_policy: bool = False
    health_percentage: int = 0

    @property
    def flags(self) -> list[bool]:
        """The five tracked file flags."""
        return [
            self.has_readme,
            self.has_contributing,
            self.has_code_of_conduct,
            self.has_license,
            self.has_security_policy,
        ]


class LatestRelease(BaseModel):
    """Most recent dated release."""

    version: str | None = None
    date: datetime
    days_since: int
    is_prerelease: bool = False


class MetricsRecord(BaseModel):
    """Flat metrics derived from a repository document.

    None means the facet behind the metric was not collected.
    """

    # Overview passthrough
    stars: int | None = None
    forks: int | None = None
    watchers: int | None = None
    open_issues_count: int | None = None
    size: int | None = None
    language: str | None = None
    license: str | None = None
    license_spdx_id: str | None = None
    archived: bool | None = None
    disabled: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    has_sponsors: bool | None = None
    advanced_security: bool | None = None

    # Contributors
    contributor_count: int | None = None
    contribution_concentration: float | None = None
    top_contributors: list[TopContributor] | None = None
    recent_commits: int | None = None

    # Commits
    commits_last_month: int | None = None
    commits_last_quarter: int | None = None

    # Issues
    open_issues: int | None = None
    open_prs: int | None = None
    closed_issues: int | None = None
    closed_prs: int | None = None
    avg_days_to_close_issue: float | None = None

    # Community and releases
    community_health: CommunityHealth | None = None
    latest_release: LatestRelease | None = None
    avg_days_between_releases: int | None = None


# --- Scoring Models ---


class ScoreComponent(BaseModel):
    """Points achieved against points possible for one health category."""

    achieved: float = 0.0
    possible: int = 0


class HealthBreakdown(BaseModel):
    """Health score with per-category detail."""

    score: int
    activity: ScoreComponent = Field(default_factory=ScoreComponent)
    community: ScoreComponent = Field(default_factory=ScoreComponent)
    maintenance: ScoreComponent = Field(default_factory=ScoreComponent)
    popularity: ScoreComponent = Field(default_factory=ScoreComponent)


class RiskCategory(BaseModel):
    """Risk level for one category with the reasons that raised it."""

    level: int = Field(default=0, ge=0, le=10)
    factors: list[str] = Field(default_factory=list)


class RiskCategories(BaseModel):
    """The four risk categories."""

    security: RiskCategory = Field(default_factory=RiskCategory)
    maintenance: RiskCategory = Field(default_factory=RiskCategory)
    sustainability: RiskCategory = Field(default_factory=RiskCategory)
    licensing: RiskCategory = Field(default_factory=RiskCategory)


class RiskAssessment(BaseModel):
    """Risk vector and weighted overall risk for a repository."""

    overall_risk: int = Field(ge=0, le=10)
    risks: RiskCategories


# --- Results ---


class RepositoryResult(BaseModel):
    """Complete assessment of one repository."""

    repository: str
    health_score: int
    health: HealthBreakdown
    risk: RiskAssessment
    metrics: MetricsRecord
    scorecard: ScorecardReport | None = None


class RepositoryFailure(BaseModel):
    """A repository that could not be assessed."""

    repository: str
    error_type: str
    message: str


class RankedRepository(BaseModel):
    """Repository entry in a ranking slice."""

    repository: str
    score: float
    issues: list[str] | None = None


class CategoryRisk(BaseModel):
    """A high-risk category of a high-risk repository."""

    repository: str
    score: int
    factors: list[str]


class RiskCategoryIndex(BaseModel):
    """High-risk repositories grouped by risk category."""

    security: list[CategoryRisk] = Field(default_factory=list)
    maintenance: list[CategoryRisk] = Field(default_factory=list)
    sustainability: list[CategoryRisk] = Field(default_factory=list)


class RiskDistribution(BaseModel):
    """Repository counts per overall-risk severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class ScorecardDistribution(BaseModel):
    """Repository counts per scorecard health bucket.

    Scorecard scores are a health scale, so "high" holds the worst scores.
    """

    high: int = 0
    medium: int = 0
    low: int = 0


class CriticalFinding(BaseModel):
    """A security-relevant scorecard check below the pass threshold."""

    repository: str
    check: str
    score: int
    reason: str = ""


class ScorecardSummary(BaseModel):
    """Consolidated scorecard statistics."""

    total_reports: int = 0
    average_score: float | None = None
    top_scoring: list[RankedRepository] = Field(default_factory=list)
    low_scoring: list[RankedRepository] = Field(default_factory=list)
    distribution: ScorecardDistribution = Field(default_factory=ScorecardDistribution)
    critical_findings: list[CriticalFinding] = Field(default_factory=list)


class CohortSummary(BaseModel):
    """Cohort-level statistics over all assessed repositories."""

    total_repositories: int = 0
    failed_repositories: int = 0
    active_repositories: int = 0
    healthy_repositories: int = 0
    at_risk_repositories: int = 0
    average_health_score: int | None = None
    health_ranking: list[str] = Field(default_factory=list)
    risk_ranking: list[str] = Field(default_factory=list)
    top_performers: list[RankedRepository] = Field(default_factory=list)
    needs_attention: list[RankedRepository] = Field(default_factory=list)
    highest_risk: list[RankedRepository] = Field(default_factory=list)
    risk_distribution: RiskDistribution = Field(default_factory=RiskDistribution)
    risk_categories: RiskCategoryIndex = Field(default_factory=RiskCategoryIndex)
    risk_summary: str = ""
    license_distribution: dict[str, int] = Field(default_factory=dict)
    scorecard: ScorecardSummary = Field(default_factory=ScorecardSummary)


class AssessmentResult(BaseModel):
    """Output of a full assessment run."""

    analyzed_at: datetime
    repositories: list[RepositoryResult] = Field(default_factory=list)
    failures: list[RepositoryFailure] = Field(default_factory=list)
    summary: CohortSummary = Field(default_factory=CohortSummary)
