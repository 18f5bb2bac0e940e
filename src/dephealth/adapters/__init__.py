"""Adapters for loading collected repository data."""

from dephealth.adapters.repo_data import (
    RepoDataAdapter,
    load_repository_data,
    parse_repository_document,
)

__all__ = ["RepoDataAdapter", "load_repository_data", "parse_repository_document"]
