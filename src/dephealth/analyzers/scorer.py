"""Health score calculator for repository metrics."""

from dephealth.models.schemas import HealthBreakdown, MetricsRecord, ScoreComponent
from dephealth.utils import round_half_up

# Ladders are (threshold, points) pairs checked in order; the first match wins.
# "Above" ladders require value > threshold, "below" ladders value < threshold.
COMMIT_TIERS = ((50, 25), (20, 20), (5, 15), (0, 10))
CONTRIBUTOR_TIERS = ((50, 15), (20, 12), (5, 8), (1, 5))
CONCENTRATION_PENALTIES = ((0.8, -5), (0.6, -2))
CLOSE_TIME_TIERS = ((7, 10), (30, 7), (90, 4))
RELEASE_AGE_TIERS = ((30, 15), (90, 10), (180, 5))
STAR_TIERS = ((10000, 15), (1000, 12), (100, 8), (10, 4))
FORK_TIERS = ((1000, 10), (100, 7), (10, 4))

# Five tracked files share a divisor of six, so all of them earn 50/6 points
COMMUNITY_FLAG_COUNT = 6


def ladder_above(value: float, tiers: tuple) -> float:
    """Points for the first tier whose threshold the value exceeds."""
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def ladder_below(value: float, tiers: tuple) -> float:
    """Points for the first tier whose threshold the value stays under."""
    for threshold, points in tiers:
        if value < threshold:
            return points
    return 0


class HealthScorer:
    """Calculates a 0-100 health score from a metrics record.

    Scoring weights (25 each):
    - Activity: commits in the last month
    - Community: contributor count (15) and community files (10)
    - Maintenance: issue close time (10) and release recency (15)
    - Popularity: stars (15) and forks (10)

    A part only adds to the possible weight when its input was collected,
    so missing data shrinks the denominator instead of dragging the score
    down.
    """

    WEIGHTS = {
        "activity": 25,
        "contributors": 15,
        "community_files": 10,
        "issue_close_time": 10,
        "release_recency": 15,
        "stars": 15,
        "forks": 10,
    }

    def calculate(self, metrics: MetricsRecord) -> HealthBreakdown:
        """Calculate the health score with its per-category breakdown."""
        activity = self._calculate_activity_score(metrics)
        community = self._calculate_community_score(metrics)
        maintenance = self._calculate_maintenance_score(metrics)
        popularity = self._calculate_popularity_score(metrics)

        components = (activity, community, maintenance, popularity)
        achieved = sum(c.achieved for c in components)
        possible = sum(c.possible for c in components)
        # Divide before scaling
        score = round_half_up(achieved / possible * 100) if possible > 0 else 0

        return HealthBreakdown(
            score=score,
            activity=activity,
            community=community,
            maintenance=maintenance,
            popularity=popularity,
        )

    def calculate_score(self, metrics: MetricsRecord) -> int:
        """Calculate just the integer health score."""
        return self.calculate(metrics).score

    def _calculate_activity_score(self, metrics: MetricsRecord) -> ScoreComponent:
        if metrics.commits_last_month is None:
            return ScoreComponent()
        return ScoreComponent(
            achieved=ladder_above(metrics.commits_last_month, COMMIT_TIERS),
            possible=self.WEIGHTS["activity"],
        )

    def _calculate_community_score(self, metrics: MetricsRecord) -> ScoreComponent:
        """Contributor count with a concentration penalty, plus community files.

        The concentration penalty is not floored: a single-contributor
        repository can end this category below zero.
        """
        achieved = 0.0
        possible = 0

        if metrics.contributor_count is not None:
            achieved += ladder_above(metrics.contributor_count, CONTRIBUTOR_TIERS)
            if metrics.contribution_concentration is not None:
                achieved += ladder_above(
                    metrics.contribution_concentration, CONCENTRATION_PENALTIES
                )
            possible += self.WEIGHTS["contributors"]

        if metrics.community_health is not None:
            present = sum(1 for flag in metrics.community_health.flags if flag)
            achieved += present / COMMUNITY_FLAG_COUNT * self.WEIGHTS["community_files"]
            possible += self.WEIGHTS["community_files"]

        return ScoreComponent(achieved=achieved, possible=possible)

    def _calculate_maintenance_score(self, metrics: MetricsRecord) -> ScoreComponent:
        achieved = 0.0
        possible = 0

        if metrics.avg_days_to_close_issue is not None:
            achieved += ladder_below(metrics.avg_days_to_close_issue, CLOSE_TIME_TIERS)
            possible += self.WEIGHTS["issue_close_time"]

        if metrics.latest_release is not None:
            achieved += ladder_below(metrics.latest_release.days_since, RELEASE_AGE_TIERS)
            possible += self.WEIGHTS["release_recency"]

        return ScoreComponent(achieved=achieved, possible=possible)

    def _calculate_popularity_score(self, metrics: MetricsRecord) -> ScoreComponent:
        achieved = 0.0
        possible = 0

        if metrics.stars is not None:
            achieved += ladder_above(metrics.stars, STAR_TIERS)
            possible += self.WEIGHTS["stars"]

        if metrics.forks is not None:
            achieved += ladder_above(metrics.forks, FORK_TIERS)
            possible += self.WEIGHTS["forks"]

        return ScoreComponent(achieved=achieved, possible=possible)


def calculate_health_score(metrics: MetricsRecord) -> int:
    """Health score for a metrics record."""
    return HealthScorer().calculate_score(metrics)
