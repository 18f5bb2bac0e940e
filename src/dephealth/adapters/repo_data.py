"""Adapter for repository data collected from the GitHub REST API.

Collected data lives in a flat directory with one JSON file per facet:

    repo-data/
        psf_requests_overview.json
        psf_requests_contributors.json
        psf_requests_commits.json
        ...

Scorecard reports live in a separate directory as ``<owner>_<repo>.json``.
The adapter groups the files per repository and normalizes the raw API
payloads into RepositoryDocument models.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from dephealth.models.schemas import (
    Commit,
    CommunityProfile,
    Contributor,
    Issue,
    LicenseInfo,
    Release,
    RepositoryDocument,
    RepositoryOverview,
    ScorecardCheck,
    ScorecardReport,
)
from dephealth.utils import parse_datetime

logger = logging.getLogger(__name__)

FACETS = ("overview", "contributors", "commits", "issues", "community", "releases")

FACET_FILE_PATTERN = re.compile(
    r"^(.+?)_(overview|contributors|commits|issues|community|releases)\.json$"
)


def repository_name_from_stem(stem: str) -> str:
    """Convert a file stem like ``psf_requests`` into ``psf/requests``.

    GitHub owners cannot contain underscores, so only the first one
    separates owner from repository.
    """
    return stem.replace("_", "/", 1)


class RepoDataAdapter:
    """Loads raw facet files from disk and groups them by repository."""

    def __init__(self, data_dir: Path, scorecard_dir: Path | None = None) -> None:
        """Initialize the adapter.

        Args:
            data_dir: Directory containing ``<repo>_<facet>.json`` files.
            scorecard_dir: Optional directory containing scorecard reports.
        """
        self.data_dir = Path(data_dir)
        self.scorecard_dir = Path(scorecard_dir) if scorecard_dir else None

    def load_raw_documents(self) -> dict[str, dict[str, Any]]:
        """Group facet files by repository.

        Files are visited in sorted order so discovery order is stable.
        A facet file that cannot be read or decoded is recorded as None.

        Returns:
            Mapping of repository name to ``{facet: payload}``.
        """
        if not self.data_dir.is_dir():
            raise ValueError(f"Repository data directory not found: {self.data_dir}")

        repositories: dict[str, dict[str, Any]] = {}
        for filepath in sorted(self.data_dir.iterdir()):
            match = FACET_FILE_PATTERN.match(filepath.name)
            if not match:
                continue

            name = repository_name_from_stem(match.group(1))
            facet = match.group(2)
            repositories.setdefault(name, {})[facet] = _read_json(filepath)

        if self.scorecard_dir is not None:
            self._attach_scorecards(repositories)

        logger.info(f"Discovered {len(repositories)} repositories in {self.data_dir}")
        return repositories

    def _attach_scorecards(self, repositories: dict[str, dict[str, Any]]) -> None:
        """Add scorecard reports to the matching repositories."""
        if not self.scorecard_dir.is_dir():
            logger.warning(f"Scorecard directory not found: {self.scorecard_dir}")
            return

        for filepath in sorted(self.scorecard_dir.glob("*.json")):
            name = repository_name_from_stem(filepath.stem)
            report = _read_json(filepath)
            if report is None:
                continue
            repositories.setdefault(name, {})["scorecard"] = report


def load_repository_data(
    data_dir: Path, scorecard_dir: Path | None = None
) -> dict[str, dict[str, Any]]:
    """Load raw facet payloads grouped by repository name."""
    return RepoDataAdapter(data_dir, scorecard_dir).load_raw_documents()


def _read_json(filepath: Path) -> Any:
    """Read a JSON file, returning None when it is unreadable."""
    try:
        return json.loads(filepath.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not parse {filepath}: {e}")
        return None


# --- Normalization ---


def parse_repository_document(name: str, facets: dict[str, Any]) -> RepositoryDocument:
    """Normalize raw API payloads into a RepositoryDocument.

    Args:
        name: Repository full name (``owner/repo``).
        facets: Raw payload per facet; missing or None facets stay absent.

    Returns:
        Validated RepositoryDocument.

    Raises:
        ValueError: If a facet has the wrong shape (pydantic's
            ValidationError is a ValueError subclass).
    """
    return RepositoryDocument(
        name=name,
        overview=_parse_overview(_as_object(facets.get("overview"), "overview")),
        contributors=_parse_list(facets.get("contributors"), _parse_contributor),
        commits=_parse_list(facets.get("commits"), _parse_commit),
        issues=_parse_list(facets.get("issues"), _parse_issue),
        community=_parse_community(_as_object(facets.get("community"), "community")),
        releases=_parse_list(facets.get("releases"), _parse_release),
        scorecard=_parse_scorecard(_as_object(facets.get("scorecard"), "scorecard")),
    )


def _as_object(payload: Any, facet: str) -> dict | None:
    """Return an object facet, rejecting payloads of the wrong type."""
    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise ValueError(f"{facet} facet must be a JSON object, got {type(payload).__name__}")
    return payload


def _parse_list(payload: Any, parse_item) -> list | None:
    """Parse a list facet.

    Anything other than a list (the statistics endpoints answer ``{}``
    while GitHub is still computing them) counts as not collected.
    """
    if not isinstance(payload, list):
        return None
    return [parse_item(item) for item in payload if isinstance(item, dict)]


def _parse_overview(data: dict | None) -> RepositoryOverview | None:
    if data is None:
        return None

    license_data = data.get("license")
    license_info = None
    if license_data:
        license_info = LicenseInfo(
            spdx_id=license_data.get("spdx_id"),
            name=license_data.get("name"),
        )

    # Any reported status, "disabled" included, counts as configured
    security = data.get("security_and_analysis") or {}
    advanced_security = (security.get("advanced_security") or {}).get("status") is not None

    return RepositoryOverview(
        stars=data.get("stargazers_count"),
        forks=data.get("forks_count"),
        watchers=data.get("watchers_count"),
        open_issues_count=data.get("open_issues_count"),
        size=data.get("size"),
        language=data.get("language"),
        license=license_info,
        archived=bool(data.get("archived", False)),
        disabled=bool(data.get("disabled", False)),
        created_at=parse_datetime(data.get("created_at")),
        updated_at=parse_datetime(data.get("updated_at")),
        pushed_at=parse_datetime(data.get("pushed_at")),
        has_sponsors=bool(data.get("has_sponsors", False)),
        advanced_security=advanced_security,
    )


def _parse_contributor(data: dict) -> Contributor:
    author = data.get("author") or {}
    weeks = data.get("weeks") or []
    return Contributor(
        login=author.get("login") or "unknown",
        total=data.get("total") or 0,
        weekly_commits=[week.get("c") or 0 for week in weeks],
    )


def _parse_commit(data: dict) -> Commit:
    commit = data.get("commit") or {}
    author = commit.get("author") or {}
    verification = commit.get("verification") or {}
    return Commit(
        authored_at=parse_datetime(author.get("date")),
        verified=bool(verification.get("verified", False)),
    )


def _parse_issue(data: dict) -> Issue:
    return Issue(
        state=data.get("state", "open"),
        is_pull_request=bool(data.get("pull_request")),
        created_at=parse_datetime(data.get("created_at")),
        closed_at=parse_datetime(data.get("closed_at")),
    )


def _parse_community(data: dict | None) -> CommunityProfile | None:
    if data is None:
        return None

    files = data.get("files") or {}
    return CommunityProfile(
        has_readme=files.get("readme") is not None,
        has_contributing=files.get("contributing") is not None,
        has_code_of_conduct=files.get("code_of_conduct") is not None,
        has_license=files.get("license") is not None,
        has_security_policy=files.get("security") is not None,
        health_percentage=data.get("health_percentage") or 0,
    )


def _parse_release(data: dict) -> Release:
    return Release(
        tag=data.get("tag_name"),
        published_at=parse_datetime(data.get("published_at")),
        prerelease=bool(data.get("prerelease", False)),
    )


def _parse_scorecard(data: dict | None) -> ScorecardReport | None:
    if data is None or data.get("score") is None:
        return None

    checks = [
        ScorecardCheck(
            name=check.get("name"),
            score=check.get("score", -1),
            reason=check.get("reason") or "",
            details=(check.get("details") or [])[:2],
        )
        for check in data.get("checks") or []
        if isinstance(check, dict) and check.get("name")
    ]
    return ScorecardReport(score=data["score"], date=data.get("date"), checks=checks)
