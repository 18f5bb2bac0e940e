"""
Shared pytest fixtures and document builders for the dephealth test suite.

All tests evaluate against a fixed NOW so results are reproducible.
"""

from datetime import datetime, timedelta, timezone

import pytest

from dephealth.models.schemas import (
    Commit,
    CommunityProfile,
    Contributor,
    Issue,
    LicenseInfo,
    Release,
    RepositoryDocument,
    RepositoryOverview,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_overview(**kwargs) -> RepositoryOverview:
    """Healthy overview: recent push, MIT license, security and sponsors on."""
    defaults = {
        "stars": 500,
        "forks": 50,
        "open_issues_count": 10,
        "license": LicenseInfo(spdx_id="MIT", name="MIT License"),
        "pushed_at": days_ago(1),
        "has_sponsors": True,
        "advanced_security": True,
    }
    defaults.update(kwargs)
    return RepositoryOverview(**defaults)


def make_contributor(login: str, total: int, recent: int = 1) -> Contributor:
    """Contributor with `recent` commits in the latest week of a 52-week history."""
    weeks = [0] * 51 + [recent]
    return Contributor(login=login, total=total, weekly_commits=weeks)


def make_commits(count: int, age_days: float = 1, verified: bool = True) -> list[Commit]:
    return [Commit(authored_at=days_ago(age_days), verified=verified) for _ in range(count)]


def make_document(name: str = "acme/widget", **facets) -> RepositoryDocument:
    return RepositoryDocument(name=name, **facets)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def healthy_document() -> RepositoryDocument:
    """A well-maintained repository with every facet collected."""
    return make_document(
        "acme/healthy",
        overview=make_overview(stars=20000, forks=2000),
        contributors=[make_contributor(f"dev{i}", 10) for i in range(60)],
        commits=make_commits(60),
        issues=[
            Issue(state="closed", created_at=days_ago(5), closed_at=days_ago(3)),
            Issue(state="open", created_at=days_ago(2)),
        ],
        community=CommunityProfile(
            has_readme=True,
            has_contributing=True,
            has_code_of_conduct=True,
            has_license=True,
            has_security_policy=True,
            health_percentage=100,
        ),
        releases=[
            Release(tag="v2.0.0", published_at=days_ago(10)),
            Release(tag="v1.9.0", published_at=days_ago(40)),
        ],
    )
