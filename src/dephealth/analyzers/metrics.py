"""Metric extraction from repository documents."""

import math
from datetime import datetime, timedelta

from dephealth.models.schemas import (
    Commit,
    CommunityHealth,
    CommunityProfile,
    Contributor,
    Issue,
    IssueState,
    LatestRelease,
    MetricsRecord,
    Release,
    RepositoryDocument,
    RepositoryOverview,
    TopContributor,
)
from dephealth.utils import days_between, ensure_utc, round_half_up, utc_now

MONTH_WINDOW_DAYS = 30
QUARTER_WINDOW_DAYS = 90

# Share of contributors counted as "top" for concentration
TOP_CONTRIBUTOR_SHARE = 0.2
TOP_CONTRIBUTORS_LISTED = 5
RECENT_WEEKS = 4


class MetricExtractor:
    """Turns a RepositoryDocument into a flat MetricsRecord.

    Facets that were not collected leave their metrics as None, so a
    downstream scorer can tell "zero commits observed" apart from
    "no commit data collected".
    """

    def extract(self, document: RepositoryDocument, now: datetime | None = None) -> MetricsRecord:
        """Extract all metrics for a repository.

        Args:
            document: Normalized repository document.
            now: Evaluation time. Defaults to the current UTC time.

        Returns:
            MetricsRecord with every metric the available facets support.
        """
        now = ensure_utc(now) if now else utc_now()
        fields: dict = {}

        if document.overview is not None:
            fields.update(self._overview_metrics(document.overview))
        if document.contributors is not None:
            fields.update(self._contributor_metrics(document.contributors))
        if document.commits is not None:
            fields.update(self._commit_metrics(document.commits, now))
        if document.issues is not None:
            fields.update(self._issue_metrics(document.issues))
        if document.community is not None:
            fields["community_health"] = self._community_health(document.community)
        if document.releases is not None:
            fields.update(self._release_metrics(document.releases, now))

        return MetricsRecord(**fields)

    def _overview_metrics(self, overview: RepositoryOverview) -> dict:
        license_info = overview.license
        return {
            "stars": overview.stars,
            "forks": overview.forks,
            "watchers": overview.watchers,
            "open_issues_count": overview.open_issues_count,
            "size": overview.size,
            "language": overview.language,
            "license": license_info.name if license_info else None,
            "license_spdx_id": license_info.spdx_id if license_info else None,
            "archived": overview.archived,
            "disabled": overview.disabled,
            "created_at": overview.created_at,
            "updated_at": overview.updated_at,
            "pushed_at": overview.pushed_at,
            "has_sponsors": overview.has_sponsors,
            "advanced_security": overview.advanced_security,
        }

    def _contributor_metrics(self, contributors: list[Contributor]) -> dict:
        ranked = sorted(contributors, key=lambda c: c.total, reverse=True)
        recent = sum(sum(c.weekly_commits[-RECENT_WEEKS:]) for c in contributors)

        return {
            "contributor_count": len(contributors),
            "contribution_concentration": contribution_concentration(contributors),
            "top_contributors": [
                TopContributor(login=c.login, commits=c.total)
                for c in ranked[:TOP_CONTRIBUTORS_LISTED]
            ],
            "recent_commits": recent,
        }

    def _commit_metrics(self, commits: list[Commit], now: datetime) -> dict:
        month_start = now - timedelta(days=MONTH_WINDOW_DAYS)
        quarter_start = now - timedelta(days=QUARTER_WINDOW_DAYS)

        dates = [ensure_utc(c.authored_at) for c in commits if c.authored_at is not None]
        return {
            "commits_last_month": sum(1 for d in dates if d > month_start),
            "commits_last_quarter": sum(1 for d in dates if d > quarter_start),
        }

    def _issue_metrics(self, issues: list[Issue]) -> dict:
        counts = {
            (IssueState.OPEN, False): 0,
            (IssueState.OPEN, True): 0,
            (IssueState.CLOSED, False): 0,
            (IssueState.CLOSED, True): 0,
        }
        close_times = []

        for issue in issues:
            counts[(issue.state, issue.is_pull_request)] += 1
            if (
                issue.state == IssueState.CLOSED
                and not issue.is_pull_request
                and issue.created_at is not None
                and issue.closed_at is not None
            ):
                close_times.append(days_between(issue.closed_at, issue.created_at))

        avg_close = round(sum(close_times) / len(close_times), 1) if close_times else None

        return {
            "open_issues": counts[(IssueState.OPEN, False)],
            "open_prs": counts[(IssueState.OPEN, True)],
            "closed_issues": counts[(IssueState.CLOSED, False)],
            "closed_prs": counts[(IssueState.CLOSED, True)],
            "avg_days_to_close_issue": avg_close,
        }

    def _community_health(self, community: CommunityProfile) -> CommunityHealth:
        return CommunityHealth(**community.model_dump())

    def _release_metrics(self, releases: list[Release], now: datetime) -> dict:
        dated = sort_releases(releases)
        if not dated:
            return {}

        latest = dated[0]
        metrics: dict = {
            "latest_release": LatestRelease(
                version=latest.tag,
                date=latest.published_at,
                days_since=math.floor(days_between(now, latest.published_at)),
                is_prerelease=latest.prerelease,
            )
        }

        if len(dated) > 1:
            gaps = [
                days_between(newer.published_at, older.published_at)
                for newer, older in zip(dated, dated[1:])
            ]
            metrics["avg_days_between_releases"] = round_half_up(sum(gaps) / len(gaps))

        return metrics


def contribution_concentration(contributors: list[Contributor]) -> float | None:
    """Commit share held by the top 20% of contributors (at least one).

    Returns None when no commits are recorded at all.
    """
    total = sum(c.total for c in contributors)
    if total <= 0:
        return None

    top_count = max(1, math.ceil(len(contributors) * TOP_CONTRIBUTOR_SHARE))
    ranked = sorted((c.total for c in contributors), reverse=True)
    return round(sum(ranked[:top_count]) / total, 2)


def sort_releases(releases: list[Release]) -> list[Release]:
    """Dated releases, newest first."""
    dated = [r for r in releases if r.published_at is not None]
    return sorted(dated, key=lambda r: ensure_utc(r.published_at), reverse=True)


def extract_metrics(document: RepositoryDocument, now: datetime | None = None) -> MetricsRecord:
    """Extract metrics with a default extractor."""
    return MetricExtractor().extract(document, now)
