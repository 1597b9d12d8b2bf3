"""Data models module."""

from buildreview.models.artifact import ArtifactStore
from buildreview.models.issue import Issue, IssueKind, IssueStore

__all__ = [
    "ArtifactStore",
    "Issue",
    "IssueKind",
    "IssueStore",
]
