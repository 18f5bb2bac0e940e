"""Analyzers for extracting metrics, scoring health and assessing risk."""

from dephealth.analyzers.metrics import MetricExtractor
from dephealth.analyzers.pipeline import AssessmentPipeline, assess, assess_raw
from dephealth.analyzers.risk import RiskAssessor
from dephealth.analyzers.scorer import HealthScorer
from dephealth.analyzers.summary import CohortSummarizer

__all__ = [
    "MetricExtractor",
    "HealthScorer",
    "RiskAssessor",
    "CohortSummarizer",
    "AssessmentPipeline",
    "assess",
    "assess_raw",
]
