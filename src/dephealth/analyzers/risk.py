"""Risk assessment across security, maintenance, sustainability and licensing."""

from datetime import datetime

from dephealth.analyzers.metrics import sort_releases
from dephealth.models.schemas import (
    RepositoryDocument,
    RiskAssessment,
    RiskCategories,
    RiskCategory,
)
from dephealth.utils import days_between, ensure_utc, round_half_up, utc_now

MAX_RISK_LEVEL = 10

OPEN_ISSUE_LIMIT = 50
UNSIGNED_COMMIT_SHARE = 0.8
BUS_FACTOR_SHARE = 0.8
ACTIVE_CONTRIBUTOR_WEEKS = 12
STALE_RELEASE_DAYS = 365

# (days since last push, points, factor); only the first match applies
PUSH_RECENCY_LADDER = (
    (365, 5, "No activity for over a year"),
    (180, 3, "No recent activity (>6 months)"),
    (90, 1, "Low activity (>3 months)"),
)

# (active contributors below, points, factor); only the first match applies
ACTIVE_CONTRIBUTOR_LADDER = (
    (1, 8, "No active contributors"),
    (2, 6, "Single maintainer"),
    (3, 3, "Few active contributors"),
)

COPYLEFT_LICENSES = {"GPL-2.0", "GPL-3.0", "AGPL-3.0"}
NON_STANDARD_LICENSES = {"NOASSERTION", "OTHER"}

CATEGORY_WEIGHTS = {
    "security": 0.35,
    "maintenance": 0.25,
    "sustainability": 0.30,
    "licensing": 0.10,
}


class RiskAccumulator:
    """Collects triggered rules for one category in evaluation order."""

    def __init__(self) -> None:
        self.level = 0
        self.factors: list[str] = []

    def add(self, points: int, factor: str) -> None:
        self.level += points
        self.factors.append(factor)

    def to_category(self) -> RiskCategory:
        """Clamp the summed level into [0, 10]."""
        level = max(0, min(MAX_RISK_LEVEL, self.level))
        return RiskCategory(level=level, factors=list(self.factors))


class RiskAssessor:
    """Assesses repository risk from the raw document.

    Works on the document rather than the metrics record because some
    rules need raw arrays (commit signatures, weekly contributor buckets).
    Each rule is skipped when the facet it reads was not collected.

    Commit signing and bus factor are judged on the supplied samples
    only; a small or unrepresentative sample skews both.
    """

    def assess(self, document: RepositoryDocument, now: datetime | None = None) -> RiskAssessment:
        """Assess all four risk categories and the weighted overall risk.

        Args:
            document: Normalized repository document.
            now: Evaluation time. Defaults to the current UTC time.

        Returns:
            RiskAssessment with clamped category levels.
        """
        now = ensure_utc(now) if now else utc_now()

        risks = RiskCategories(
            security=self._assess_security(document),
            maintenance=self._assess_maintenance(document, now),
            sustainability=self._assess_sustainability(document),
            licensing=self._assess_licensing(document),
        )
        return RiskAssessment(overall_risk=overall_risk(risks), risks=risks)

    def _assess_security(self, document: RepositoryDocument) -> RiskCategory:
        risk = RiskAccumulator()
        overview = document.overview

        if overview is not None:
            if not overview.advanced_security:
                risk.add(3, "No advanced security enabled")
            if overview.open_issues_count is not None and overview.open_issues_count > OPEN_ISSUE_LIMIT:
                risk.add(2, "High number of open issues")

        commits = document.commits
        if commits:
            unsigned = sum(1 for c in commits if not c.verified)
            if unsigned > len(commits) * UNSIGNED_COMMIT_SHARE:
                risk.add(2, "Most commits unsigned")

        return risk.to_category()

    def _assess_maintenance(self, document: RepositoryDocument, now: datetime) -> RiskCategory:
        risk = RiskAccumulator()
        overview = document.overview

        if overview is not None:
            if overview.pushed_at is not None:
                days_since_push = days_between(now, overview.pushed_at)
                for threshold, points, factor in PUSH_RECENCY_LADDER:
                    if days_since_push > threshold:
                        risk.add(points, factor)
                        break

            if overview.archived:
                risk.add(10, "Repository archived")
            if overview.disabled:
                risk.add(10, "Repository disabled")

        if document.releases is not None:
            if not document.releases:
                risk.add(2, "No releases")
            else:
                dated = sort_releases(document.releases)
                if dated and days_between(now, dated[0].published_at) > STALE_RELEASE_DAYS:
                    risk.add(3, "Stale releases (>1 year)")

        return risk.to_category()

    def _assess_sustainability(self, document: RepositoryDocument) -> RiskCategory:
        risk = RiskAccumulator()
        contributors = document.contributors

        if contributors is not None:
            active = sum(
                1
                for c in contributors
                if any(count > 0 for count in c.weekly_commits[-ACTIVE_CONTRIBUTOR_WEEKS:])
            )
            for limit, points, factor in ACTIVE_CONTRIBUTOR_LADDER:
                if active < limit:
                    risk.add(points, factor)
                    break

            if contributors:
                total = sum(c.total for c in contributors)
                top = max(c.total for c in contributors)
                if top > total * BUS_FACTOR_SHARE:
                    risk.add(4, "High bus factor")

        if document.overview is not None and not document.overview.has_sponsors:
            risk.add(1, "No sponsorship program")

        return risk.to_category()

    def _assess_licensing(self, document: RepositoryDocument) -> RiskCategory:
        risk = RiskAccumulator()
        overview = document.overview

        if overview is not None:
            license_info = overview.license
            if license_info is None:
                risk.add(8, "No license specified")
            elif license_info.spdx_id in COPYLEFT_LICENSES:
                risk.add(3, f"Strong copyleft license ({license_info.spdx_id})")
            elif license_info.spdx_id in NON_STANDARD_LICENSES:
                risk.add(5, "Non-standard license")

        return risk.to_category()


def overall_risk(risks: RiskCategories) -> int:
    """Weighted blend of the clamped category levels, capped at 10."""
    weighted = sum(
        getattr(risks, category).level * weight
        for category, weight in CATEGORY_WEIGHTS.items()
    )
    return round_half_up(min(MAX_RISK_LEVEL, weighted))


def assess_risk(document: RepositoryDocument, now: datetime | None = None) -> RiskAssessment:
    """Risk assessment with a default assessor."""
    return RiskAssessor().assess(document, now)
