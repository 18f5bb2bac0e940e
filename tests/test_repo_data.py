"""
Tests for loading and normalizing collected repository data.
"""

import json
from datetime import datetime, timezone

import pytest

from dephealth.adapters.repo_data import (
    RepoDataAdapter,
    load_repository_data,
    parse_repository_document,
    repository_name_from_stem,
)
from dephealth.models.schemas import IssueState


class TestRepositoryName:
    @pytest.mark.parametrize(
        "stem,name",
        [
            ("psf_requests", "psf/requests"),
            ("my-org_my_repo", "my-org/my_repo"),
            ("acme_widget", "acme/widget"),
        ],
    )
    def test_first_underscore_separates_owner(self, stem, name):
        assert repository_name_from_stem(stem) == name


class TestParseOverview:
    def test_field_mapping(self):
        document = parse_repository_document(
            "psf/requests",
            {
                "overview": {
                    "stargazers_count": 50000,
                    "forks_count": 9000,
                    "watchers_count": 1200,
                    "open_issues_count": 230,
                    "language": "Python",
                    "license": {"spdx_id": "Apache-2.0", "name": "Apache License 2.0"},
                    "archived": False,
                    "pushed_at": "2025-05-30T08:15:00Z",
                    "has_sponsors": True,
                    "security_and_analysis": {"advanced_security": {"status": "enabled"}},
                }
            },
        )
        overview = document.overview
        assert overview.stars == 50000
        assert overview.forks == 9000
        assert overview.open_issues_count == 230
        assert overview.license.spdx_id == "Apache-2.0"
        assert overview.pushed_at == datetime(2025, 5, 30, 8, 15, tzinfo=timezone.utc)
        assert overview.has_sponsors is True
        assert overview.advanced_security is True

    @pytest.mark.parametrize(
        "security,expected",
        [
            ({"advanced_security": {"status": "enabled"}}, True),
            ({"advanced_security": {"status": "disabled"}}, True),
            ({"advanced_security": {}}, False),
            ({"secret_scanning": {"status": "enabled"}}, False),
            (None, False),
        ],
    )
    def test_advanced_security_requires_a_reported_status(self, security, expected):
        document = parse_repository_document(
            "acme/widget", {"overview": {"security_and_analysis": security}}
        )
        assert document.overview.advanced_security is expected

    def test_unparseable_timestamp_is_dropped(self):
        document = parse_repository_document(
            "acme/widget",
            {"overview": {"pushed_at": "yesterday", "created_at": "2020-01-01T00:00:00Z"}},
        )
        assert document.overview.pushed_at is None
        assert document.overview.created_at == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_null_license(self):
        document = parse_repository_document("acme/widget", {"overview": {"license": None}})
        assert document.overview.license is None

    def test_overview_must_be_object(self):
        with pytest.raises(ValueError, match="overview"):
            parse_repository_document("acme/widget", {"overview": [1, 2, 3]})


class TestParseFacets:
    def test_missing_facets_stay_absent(self):
        document = parse_repository_document("acme/widget", {})
        assert document.overview is None
        assert document.contributors is None
        assert document.commits is None
        assert document.issues is None
        assert document.community is None
        assert document.releases is None
        assert document.scorecard is None

    def test_pending_statistics_count_as_missing(self):
        document = parse_repository_document("acme/widget", {"contributors": {}})
        assert document.contributors is None

    def test_contributors(self):
        payload = [
            {"author": {"login": "alice"}, "total": 12, "weeks": [{"c": 0}, {"c": 3}]},
            {"author": None, "total": 2, "weeks": []},
        ]
        contributors = parse_repository_document("acme/widget", {"contributors": payload}).contributors
        assert contributors[0].login == "alice"
        assert contributors[0].total == 12
        assert contributors[0].weekly_commits == [0, 3]
        assert contributors[1].login == "unknown"

    def test_commits(self):
        payload = [
            {"commit": {"author": {"date": "2025-05-01T00:00:00Z"}, "verification": {"verified": True}}},
            {"commit": {"author": {"date": "2025-05-02T00:00:00Z"}}},
        ]
        commits = parse_repository_document("acme/widget", {"commits": payload}).commits
        assert commits[0].verified is True
        assert commits[1].verified is False
        assert commits[1].authored_at == datetime(2025, 5, 2, tzinfo=timezone.utc)

    def test_malformed_commit_date_keeps_the_commit(self):
        payload = [
            {"commit": {"author": {"date": "2025-05-01T00:00:00Z"}}},
            {"commit": {"author": {"date": "not-a-date"}}},
        ]
        commits = parse_repository_document("acme/widget", {"commits": payload}).commits
        assert len(commits) == 2
        assert commits[1].authored_at is None

    def test_issues_and_pull_requests(self):
        payload = [
            {"state": "open", "created_at": "2025-05-01T00:00:00Z"},
            {
                "state": "closed",
                "pull_request": {"url": "https://api.github.com/repos/acme/widget/pulls/2"},
                "created_at": "2025-05-01T00:00:00Z",
                "closed_at": "2025-05-03T00:00:00Z",
            },
        ]
        issues = parse_repository_document("acme/widget", {"issues": payload}).issues
        assert issues[0].state == IssueState.OPEN
        assert issues[0].is_pull_request is False
        assert issues[1].state == IssueState.CLOSED
        assert issues[1].is_pull_request is True

    def test_community_files(self):
        payload = {
            "files": {
                "readme": {"url": "https://example.test/README.md"},
                "license": {"key": "mit"},
                "contributing": None,
                "security": {"url": "https://example.test/SECURITY.md"},
            }
        }
        community = parse_repository_document("acme/widget", {"community": payload}).community
        assert community.has_readme is True
        assert community.has_license is True
        assert community.has_security_policy is True
        assert community.has_contributing is False
        assert community.has_code_of_conduct is False
        assert community.health_percentage == 0

    def test_releases(self):
        payload = [
            {"tag_name": "v1.0.0", "published_at": "2025-01-01T00:00:00Z", "prerelease": False},
            {"tag_name": "v2.0.0rc1", "published_at": None, "prerelease": True},
        ]
        releases = parse_repository_document("acme/widget", {"releases": payload}).releases
        assert [r.tag for r in releases] == ["v1.0.0", "v2.0.0rc1"]
        assert releases[1].published_at is None
        assert releases[1].prerelease is True

    def test_scorecard_details_trimmed(self):
        payload = {
            "score": 6.4,
            "date": "2025-05-20",
            "checks": [
                {
                    "name": "Token-Permissions",
                    "score": 0,
                    "reason": "detected GitHub workflow tokens with excessive permissions",
                    "details": ["one", "two", "three"],
                },
                {"name": "Maintained", "score": 10},
            ],
        }
        scorecard = parse_repository_document("acme/widget", {"scorecard": payload}).scorecard
        assert scorecard.score == 6.4
        assert scorecard.checks[0].details == ["one", "two"]
        assert scorecard.checks[1].reason == ""

    def test_scorecard_checks_without_name_are_skipped(self):
        payload = {
            "score": 5.0,
            "checks": [{"score": 0, "reason": "no name"}, {"name": "Code-Review", "score": 4}],
        }
        scorecard = parse_repository_document("acme/widget", {"scorecard": payload}).scorecard
        assert [c.name for c in scorecard.checks] == ["Code-Review"]

    def test_scorecard_without_score_is_ignored(self):
        document = parse_repository_document("acme/widget", {"scorecard": {"checks": []}})
        assert document.scorecard is None


class TestRepoDataAdapter:
    def _write(self, directory, filename, payload):
        (directory / filename).write_text(json.dumps(payload))

    def test_groups_facet_files(self, tmp_path):
        self._write(tmp_path, "psf_requests_overview.json", {"stargazers_count": 1})
        self._write(tmp_path, "psf_requests_releases.json", [])
        self._write(tmp_path, "my-org_my_repo_releases.json", [])
        self._write(tmp_path, "notes.json", {"ignored": True})
        (tmp_path / "README.md").write_text("not data")

        raw = RepoDataAdapter(tmp_path).load_raw_documents()
        assert list(raw) == ["my-org/my_repo", "psf/requests"]
        assert raw["psf/requests"] == {"overview": {"stargazers_count": 1}, "releases": []}

    def test_invalid_json_becomes_none(self, tmp_path):
        (tmp_path / "acme_widget_commits.json").write_text("{not json")
        raw = RepoDataAdapter(tmp_path).load_raw_documents()
        assert raw == {"acme/widget": {"commits": None}}

    def test_attaches_scorecards(self, tmp_path):
        data_dir = tmp_path / "data"
        scorecard_dir = tmp_path / "scorecards"
        data_dir.mkdir()
        scorecard_dir.mkdir()
        self._write(data_dir, "acme_widget_overview.json", {})
        self._write(scorecard_dir, "acme_widget.json", {"score": 7.1, "checks": []})

        raw = RepoDataAdapter(data_dir, scorecard_dir).load_raw_documents()
        assert raw["acme/widget"]["scorecard"]["score"] == 7.1

    def test_missing_scorecard_directory_is_tolerated(self, tmp_path):
        self._write(tmp_path, "acme_widget_overview.json", {})
        raw = RepoDataAdapter(tmp_path, tmp_path / "absent").load_raw_documents()
        assert "scorecard" not in raw["acme/widget"]

    def test_missing_data_directory(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            RepoDataAdapter(tmp_path / "absent").load_raw_documents()

    def test_load_repository_data(self, tmp_path):
        self._write(tmp_path, "acme_widget_issues.json", [{"state": "closed"}])
        raw = load_repository_data(tmp_path)
        assert raw == {"acme/widget": {"issues": [{"state": "closed"}]}}
