"""Cohort-level summaries over assessed repositories."""

from collections import Counter

from dephealth.config import AnalysisSettings
from dephealth.models.schemas import (
    CategoryRisk,
    CohortSummary,
    CriticalFinding,
    MetricsRecord,
    RankedRepository,
    RepositoryResult,
    RiskCategoryIndex,
    RiskDistribution,
    ScorecardDistribution,
    ScorecardSummary,
)
from dephealth.utils import round_half_up

HEALTHY_SCORE = 70
AT_RISK_SCORE = 40

# Overall risk severity buckets (risk scale: higher is worse)
CRITICAL_RISK = 8
HIGH_RISK = 6
MEDIUM_RISK = 4

# Repositories and categories at or above this level are listed per category
CATEGORY_ALERT_LEVEL = 7
ALERT_CATEGORIES = ("security", "maintenance", "sustainability")

# Scorecard buckets (health scale: lower is worse)
SCORECARD_HIGH_RISK_BELOW = 4
SCORECARD_LOW_RISK_FROM = 7

STALE_RELEASE_DAYS = 180
LOW_CONTRIBUTOR_COUNT = 3
HIGH_CONCENTRATION = 0.8


def identify_issues(metrics: MetricsRecord) -> list[str]:
    """Short labels for the most visible problems of a repository."""
    issues = []

    if metrics.commits_last_month == 0:
        issues.append("No recent activity")
    if metrics.contributor_count is not None and metrics.contributor_count < LOW_CONTRIBUTOR_COUNT:
        issues.append("Low contributor count")
    if (
        metrics.contribution_concentration is not None
        and metrics.contribution_concentration > HIGH_CONCENTRATION
    ):
        issues.append("High contribution concentration")
    if metrics.latest_release and metrics.latest_release.days_since > STALE_RELEASE_DAYS:
        issues.append("Stale releases")
    if metrics.archived:
        issues.append("Repository archived")

    return issues


class CohortSummarizer:
    """Reduces per-repository results to cohort statistics.

    Rankings rely on sorted() being stable, so repositories with equal
    scores keep their discovery order.
    """

    def __init__(self, settings: AnalysisSettings | None = None) -> None:
        self.settings = settings or AnalysisSettings()

    def summarize(
        self, results: list[RepositoryResult], failed_count: int = 0
    ) -> CohortSummary:
        """Build the cohort summary.

        Args:
            results: Successfully assessed repositories in discovery order.
            failed_count: Number of repositories that could not be assessed.

        Returns:
            CohortSummary over the given results.
        """
        top_n = self.settings.top_n
        by_health = sorted(results, key=lambda r: r.health_score, reverse=True)
        by_risk = sorted(results, key=lambda r: r.risk.overall_risk, reverse=True)

        average = None
        if results:
            average = round_half_up(sum(r.health_score for r in results) / len(results))

        return CohortSummary(
            total_repositories=len(results),
            failed_repositories=failed_count,
            active_repositories=sum(
                1 for r in results if (r.metrics.commits_last_month or 0) > 0
            ),
            healthy_repositories=sum(1 for r in results if r.health_score > HEALTHY_SCORE),
            at_risk_repositories=sum(1 for r in results if r.health_score < AT_RISK_SCORE),
            average_health_score=average,
            health_ranking=[r.repository for r in by_health],
            risk_ranking=[r.repository for r in by_risk],
            top_performers=[
                RankedRepository(repository=r.repository, score=r.health_score)
                for r in by_health[:top_n]
            ],
            needs_attention=[
                RankedRepository(
                    repository=r.repository,
                    score=r.health_score,
                    issues=identify_issues(r.metrics),
                )
                for r in by_health[-top_n:]
            ],
            highest_risk=[
                RankedRepository(repository=r.repository, score=r.risk.overall_risk)
                for r in by_risk[:top_n]
            ],
            risk_distribution=self._risk_distribution(results),
            risk_categories=self._risk_categories(results),
            risk_summary=self._risk_summary(results),
            license_distribution=dict(
                Counter(r.metrics.license or "None" for r in results)
            ),
            scorecard=self._scorecard_summary(results),
        )

    def _risk_distribution(self, results: list[RepositoryResult]) -> RiskDistribution:
        distribution = RiskDistribution()
        for result in results:
            risk = result.risk.overall_risk
            if risk >= CRITICAL_RISK:
                distribution.critical += 1
            elif risk >= HIGH_RISK:
                distribution.high += 1
            elif risk >= MEDIUM_RISK:
                distribution.medium += 1
            else:
                distribution.low += 1
        return distribution

    def _risk_categories(self, results: list[RepositoryResult]) -> RiskCategoryIndex:
        index = RiskCategoryIndex()
        for result in results:
            if result.risk.overall_risk < CATEGORY_ALERT_LEVEL:
                continue
            for category in ALERT_CATEGORIES:
                risk = getattr(result.risk.risks, category)
                if risk.level >= CATEGORY_ALERT_LEVEL:
                    getattr(index, category).append(
                        CategoryRisk(
                            repository=result.repository,
                            score=risk.level,
                            factors=list(risk.factors),
                        )
                    )
        return index

    def _risk_summary(self, results: list[RepositoryResult]) -> str:
        high = sum(1 for r in results if r.risk.overall_risk >= CATEGORY_ALERT_LEVEL)
        medium = sum(
            1 for r in results if MEDIUM_RISK <= r.risk.overall_risk < CATEGORY_ALERT_LEVEL
        )
        low = sum(1 for r in results if r.risk.overall_risk < MEDIUM_RISK)
        categories = self._risk_categories(results)
        return (
            f"Risk Distribution: {high} high-risk, {medium} medium-risk, "
            f"{low} low-risk repositories. "
            f"Top concerns: {len(categories.security)} security, "
            f"{len(categories.maintenance)} maintenance, "
            f"{len(categories.sustainability)} sustainability risks."
        )

    def _scorecard_summary(self, results: list[RepositoryResult]) -> ScorecardSummary:
        scored = [r for r in results if r.scorecard is not None]
        if not scored:
            return ScorecardSummary()

        n = self.settings.scorecard_top_n
        critical_checks = set(self.settings.critical_checks)
        threshold = self.settings.check_pass_threshold

        findings = [
            CriticalFinding(
                repository=r.repository,
                check=check.name,
                score=check.score,
                reason=check.reason,
            )
            for r in scored
            for check in r.scorecard.checks
            if check.name in critical_checks and check.score < threshold
        ]

        distribution = ScorecardDistribution()
        for r in scored:
            if r.scorecard.score < SCORECARD_HIGH_RISK_BELOW:
                distribution.high += 1
            elif r.scorecard.score < SCORECARD_LOW_RISK_FROM:
                distribution.medium += 1
            else:
                distribution.low += 1

        ranked = sorted(scored, key=lambda r: r.scorecard.score, reverse=True)
        return ScorecardSummary(
            total_reports=len(scored),
            average_score=round(sum(r.scorecard.score for r in scored) / len(scored), 2),
            top_scoring=[
                RankedRepository(repository=r.repository, score=r.scorecard.score)
                for r in ranked[:n]
            ],
            low_scoring=[
                RankedRepository(repository=r.repository, score=r.scorecard.score)
                for r in ranked[-n:]
            ],
            distribution=distribution,
            critical_findings=findings,
        )


def summarize(
    results: list[RepositoryResult],
    settings: AnalysisSettings | None = None,
    failed_count: int = 0,
) -> CohortSummary:
    """Cohort summary with a default summarizer."""
    return CohortSummarizer(settings).summarize(results, failed_count)
