"""Domain records produced by an export."""

from __future__ import annotations

from typing import Any, Union

from ghexport.core.config.models import ResourceKind

from .common import (
    Actor,
    Comment,
    IssueRef,
    Label,
    Milestone,
    ProjectRef,
    PullRequestRef,
    Reactions,
    RepositoryRef,
    TimelineItem,
)
from .issue import Issue
from .pull_request import (
    AutoMerge,
    BranchRef,
    ChangedFile,
    CheckRun,
    Commit,
    PullRequest,
    Review,
    ReviewComment,
    StatusCheck,
    Team,
)

Record = Union[Issue, PullRequest]

_MODELS: dict[ResourceKind, type[Issue] | type[PullRequest]] = {
    ResourceKind.ISSUES: Issue,
    ResourceKind.PULL_REQUESTS: PullRequest,
}


def record_model_for(kind: ResourceKind) -> type[Issue] | type[PullRequest]:
    return _MODELS[kind]


def parse_record(kind: ResourceKind, raw: Any) -> Record:
    """Validate one raw GraphQL node.

    Raises:
        pydantic.ValidationError: If the node is malformed
    """
    return record_model_for(kind).model_validate(raw)


__all__ = [
    "Actor",
    "AutoMerge",
    "BranchRef",
    "ChangedFile",
    "CheckRun",
    "Comment",
    "Commit",
    "Issue",
    "IssueRef",
    "Label",
    "Milestone",
    "ProjectRef",
    "PullRequest",
    "PullRequestRef",
    "Reactions",
    "Record",
    "RepositoryRef",
    "Review",
    "ReviewComment",
    "StatusCheck",
    "Team",
    "TimelineItem",
    "parse_record",
    "record_model_for",
]
