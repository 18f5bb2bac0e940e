"""Data models and schemas."""

from dephealth.models.schemas import (
    AssessmentResult,
    MetricsRecord,
    RepositoryDocument,
    RiskAssessment,
)

__all__ = ["RepositoryDocument", "MetricsRecord", "RiskAssessment", "AssessmentResult"]
