"""Exported representation of a GitHub issue."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from .common import (
    Actor,
    Comment,
    GitHubModel,
    Label,
    Milestone,
    ProjectRef,
    PullRequestRef,
    Reactions,
    RepositoryRef,
    TimelineItem,
    connection_nodes,
    fill_count,
    reactions_from,
)


class Issue(GitHubModel):
    """A GitHub issue with its nested comments, labels and timeline."""

    id: str
    number: int | None = None
    title: str | None = None
    body: str | None = None
    state: str | None = None
    state_reason: str | None = None
    locked: bool = False
    lock_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("activeLockReason", "lockReason", "lock_reason"),
        serialization_alias="lockReason",
    )
    author: Actor | None = None
    repository: RepositoryRef | None = None
    assignees: list[Actor] = Field(default_factory=list)
    labels: list[Label] = Field(default_factory=list)
    milestone: Milestone | None = None
    projects: list[ProjectRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices("projectCards", "projects"),
        serialization_alias="projects",
    )
    comments: list[Comment] = Field(default_factory=list)
    comment_count: int | None = None
    reactions: Reactions | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    last_edited_at: datetime | None = None
    url: str | None = None
    linked_pull_requests: list[PullRequestRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "closedByPullRequestsReferences", "linkedPullRequests", "linked_pull_requests"
        ),
        serialization_alias="linkedPullRequests",
    )
    timeline: list[TimelineItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("timelineItems", "timeline"),
        serialization_alias="timeline",
    )
    subscription_state: str | None = Field(
        default=None,
        validation_alias=AliasChoices("viewerSubscription", "subscriptionState", "subscription_state"),
        serialization_alias="subscriptionState",
    )
    viewer_can_subscribe: bool = False
    viewer_can_update: bool = False
    is_pinned: bool = False
    is_duplicate: bool = False

    @model_validator(mode="before")
    @classmethod
    def flatten_connections(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        fill_count(data, "comments", "commentCount")
        reactions_from(data)
        if "isDuplicate" not in data and data.get("stateReason") == "DUPLICATE":
            data["isDuplicate"] = True
        return data

    @field_validator(
        "assignees", "labels", "projects", "comments", "linked_pull_requests", "timeline",
        mode="before",
    )
    @classmethod
    def unwrap_nodes(cls, v: Any) -> Any:
        return connection_nodes(v)

    @field_validator("locked", "viewer_can_subscribe", "viewer_can_update", "is_pinned", mode="before")
    @classmethod
    def null_is_false(cls, v: Any) -> Any:
        return False if v is None else v
