"""End-to-end assessment pipeline for repositories."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from dephealth.adapters.repo_data import load_repository_data, parse_repository_document
from dephealth.analyzers.metrics import MetricExtractor
from dephealth.analyzers.risk import RiskAssessor
from dephealth.analyzers.scorer import HealthScorer
from dephealth.analyzers.summary import CohortSummarizer
from dephealth.config import AnalysisSettings
from dephealth.models.schemas import (
    AssessmentResult,
    RepositoryDocument,
    RepositoryFailure,
    RepositoryResult,
)
from dephealth.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Data-shape errors that fail a single repository without aborting the batch
DOCUMENT_ERRORS = (ValidationError, ValueError, TypeError, KeyError)


class AssessmentPipeline:
    """Orchestrates the assessment of a set of repositories.

    Pipeline stages:
    1. Normalize raw documents (when given raw payloads)
    2. Extract metrics per repository
    3. Score health and assess risk (independent of each other)
    4. Summarize the cohort once every repository is done
    """

    def __init__(self, settings: AnalysisSettings | None = None) -> None:
        """Initialize the pipeline.

        Args:
            settings: Analysis settings. Defaults to AnalysisSettings().
        """
        self.settings = settings or AnalysisSettings()
        self.extractor = MetricExtractor()
        self.scorer = HealthScorer()
        self.assessor = RiskAssessor()
        self.summarizer = CohortSummarizer(self.settings)

    def analyze_repository(self, document: RepositoryDocument, now: datetime) -> RepositoryResult:
        """Run extraction, scoring and risk assessment for one repository."""
        metrics = self.extractor.extract(document, now)
        health = self.scorer.calculate(metrics)
        risk = self.assessor.assess(document, now)

        logger.debug(
            f"{document.name}: health {health.score}, overall risk {risk.overall_risk}"
        )
        return RepositoryResult(
            repository=document.name,
            health_score=health.score,
            health=health,
            risk=risk,
            metrics=metrics,
            scorecard=document.scorecard,
        )

    def _safe_analyze(
        self, document: RepositoryDocument, now: datetime
    ) -> RepositoryResult | RepositoryFailure:
        try:
            return self.analyze_repository(document, now)
        except DOCUMENT_ERRORS as e:
            logger.warning(f"Skipping {document.name}: {e}")
            return RepositoryFailure(
                repository=document.name,
                error_type=type(e).__name__,
                message=str(e),
            )

    def assess(
        self,
        documents: Iterable[RepositoryDocument],
        now: datetime | None = None,
        failures: list[RepositoryFailure] | None = None,
    ) -> AssessmentResult:
        """Assess every document and summarize the cohort.

        Args:
            documents: Repository documents in discovery order.
            now: Evaluation time shared by every repository. Defaults to
                the current UTC time.
            failures: Failures recorded before assessment (e.g. while
                parsing raw payloads).

        Returns:
            AssessmentResult with per-repository results in input order.
        """
        now = ensure_utc(now) if now else utc_now()
        documents = list(documents)
        failures = list(failures or [])

        if self.settings.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                outcomes = list(executor.map(lambda d: self._safe_analyze(d, now), documents))
        else:
            outcomes = [self._safe_analyze(d, now) for d in documents]

        results = [o for o in outcomes if isinstance(o, RepositoryResult)]
        failures.extend(o for o in outcomes if isinstance(o, RepositoryFailure))

        logger.info(
            f"Assessed {len(results)} repositories ({len(failures)} failed)"
        )

        return AssessmentResult(
            analyzed_at=now,
            repositories=results,
            failures=failures,
            summary=self.summarizer.summarize(results, failed_count=len(failures)),
        )

    def assess_raw(
        self,
        raw_documents: dict[str, dict[str, Any]],
        now: datetime | None = None,
    ) -> AssessmentResult:
        """Normalize raw facet payloads and assess them.

        Args:
            raw_documents: Mapping of repository name to ``{facet: payload}``.
            now: Evaluation time.

        Returns:
            AssessmentResult; repositories whose payloads fail to parse are
            listed as failures.
        """
        documents = []
        failures = []

        for name, facets in raw_documents.items():
            try:
                documents.append(parse_repository_document(name, facets))
            except DOCUMENT_ERRORS as e:
                logger.warning(f"Could not parse repository data for {name}: {e}")
                failures.append(
                    RepositoryFailure(
                        repository=name,
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )

        return self.assess(documents, now=now, failures=failures)

    def assess_directory(
        self,
        data_dir: Path,
        scorecard_dir: Path | None = None,
        now: datetime | None = None,
    ) -> AssessmentResult:
        """Load collected data from disk and assess it."""
        return self.assess_raw(load_repository_data(data_dir, scorecard_dir), now=now)


def assess(
    documents: Iterable[RepositoryDocument],
    now: datetime | None = None,
    settings: AnalysisSettings | None = None,
) -> AssessmentResult:
    """Assess a collection of repository documents."""
    return AssessmentPipeline(settings).assess(documents, now=now)


def assess_raw(
    raw_documents: dict[str, dict[str, Any]],
    now: datetime | None = None,
    settings: AnalysisSettings | None = None,
) -> AssessmentResult:
    """Assess raw GitHub API payloads grouped by repository."""
    return AssessmentPipeline(settings).assess_raw(raw_documents, now=now)


def save_result(result: AssessmentResult, filepath: Path) -> Path:
    """Write an assessment result as JSON."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    data = result.model_dump(mode="json")
    filepath.write_text(json.dumps(data, indent=2, default=str))
    return filepath
