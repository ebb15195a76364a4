"""Exported representation of a GitHub pull request."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from .common import (
    Actor,
    Comment,
    GitHubModel,
    IssueRef,
    Label,
    Milestone,
    ProjectRef,
    Reactions,
    RepositoryRef,
    TimelineItem,
    connection_nodes,
    fill_count,
    reactions_from,
)


def _oid(value: Any) -> Any:
    """`{"oid": "abc"}` -> "abc"."""
    if isinstance(value, dict):
        return value.get("oid")
    return value


def _git_actor(value: Any) -> Any:
    """GitActor `{"name", "user": {...}}` -> Actor payload."""
    if isinstance(value, dict) and "user" in value:
        user = value.get("user")
        if isinstance(user, dict):
            return user
        return {"name": value.get("name")}
    return value


class Team(GitHubModel):
    id: str | None = None
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    url: str | None = None


class CheckRun(GitHubModel):
    id: str | None = None
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    details_url: str | None = None
    external_id: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class StatusCheck(GitHubModel):
    id: str | None = None
    context: str | None = None
    state: str | None = None
    description: str | None = None
    target_url: str | None = None
    creator: Actor | None = None
    created_at: datetime | None = None


class Commit(GitHubModel):
    id: str | None = None
    oid: str | None = None
    message: str | None = None
    author: Actor | None = None
    committer: Actor | None = None
    authored_date: datetime | None = None
    committed_date: datetime | None = None
    url: str | None = None
    check_runs: list[CheckRun] = Field(default_factory=list)
    status_checks: list[StatusCheck] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def unwrap_commit(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # commits nodes look like {"commit": {...}}
        if isinstance(data.get("commit"), dict) and "oid" not in data:
            data = data["commit"]
        data = dict(data)
        data["author"] = _git_actor(data.get("author"))
        data["committer"] = _git_actor(data.get("committer"))

        rollup = data.pop("statusCheckRollup", None)
        if isinstance(rollup, dict):
            contexts = [c for c in connection_nodes(rollup.get("contexts")) if isinstance(c, dict)]
            data.setdefault(
                "checkRuns", [c for c in contexts if c.get("__typename") == "CheckRun"]
            )
            data.setdefault(
                "statusChecks", [c for c in contexts if c.get("__typename") == "StatusContext"]
            )
        return data


class BranchRef(GitHubModel):
    id: str | None = None
    name: str | None = None
    prefix: str | None = None
    repository: RepositoryRef | None = None
    target: Commit | None = None


class ChangedFile(GitHubModel):
    path: str | None = None
    additions: int | None = None
    deletions: int | None = None
    changes: int | None = None
    status: str | None = Field(
        default=None,
        validation_alias=AliasChoices("changeType", "status"),
        serialization_alias="status",
    )
    previous_path: str | None = None
    patch: str | None = None

    @model_validator(mode="before")
    @classmethod
    def total_changes(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("changes") is None:
            additions = data.get("additions")
            deletions = data.get("deletions")
            if isinstance(additions, int) and isinstance(deletions, int):
                data = {**data, "changes": additions + deletions}
        return data


class ReviewComment(GitHubModel):
    id: str | None = None
    body: str | None = None
    author: Actor | None = None
    path: str | None = None
    position: int | None = None
    original_position: int | None = None
    commit_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("commit", "commitId"),
        serialization_alias="commitId",
    )
    original_commit_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("originalCommit", "originalCommitId"),
        serialization_alias="originalCommitId",
    )
    diff_hunk: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_edited_at: datetime | None = None
    url: str | None = None
    reactions: Reactions | None = None

    @model_validator(mode="before")
    @classmethod
    def summarise_reactions(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            reactions_from(data)
        return data

    @field_validator("commit_id", "original_commit_id", mode="before")
    @classmethod
    def commit_oid(cls, v: Any) -> Any:
        return _oid(v)


class Review(GitHubModel):
    id: str | None = None
    body: str | None = None
    author: Actor | None = None
    state: str | None = None
    commit_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("commit", "commitId"),
        serialization_alias="commitId",
    )
    comments: list[ReviewComment] = Field(default_factory=list)
    submitted_at: datetime | None = None
    url: str | None = None

    @field_validator("commit_id", mode="before")
    @classmethod
    def commit_oid(cls, v: Any) -> Any:
        return _oid(v)

    @field_validator("comments", mode="before")
    @classmethod
    def unwrap_nodes(cls, v: Any) -> Any:
        return connection_nodes(v)


class AutoMerge(GitHubModel):
    enabled: bool = True
    merge_method: str | None = None
    enabled_by: Actor | None = None
    enabled_at: datetime | None = None


class PullRequest(GitHubModel):
    """A GitHub pull request with reviews, commits, files and checks."""

    id: str
    number: int | None = None
    title: str | None = None
    body: str | None = None
    state: str | None = None
    locked: bool = False
    lock_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("activeLockReason", "lockReason", "lock_reason"),
        serialization_alias="lockReason",
    )
    is_draft: bool = False
    merged: bool = False
    mergeable: str | None = None
    merge_state_status: str | None = None
    merge_commit_sha: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mergeCommit", "mergeCommitSha", "merge_commit_sha"),
        serialization_alias="mergeCommitSha",
    )
    can_be_rebased: bool = False
    maintainer_can_modify: bool = False
    author: Actor | None = None
    repository: RepositoryRef | None = None
    assignees: list[Actor] = Field(default_factory=list)
    requested_reviewers: list[Actor] = Field(default_factory=list)
    requested_teams: list[Team] = Field(default_factory=list)
    labels: list[Label] = Field(default_factory=list)
    milestone: Milestone | None = None
    projects: list[ProjectRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices("projectCards", "projects"),
        serialization_alias="projects",
    )
    base_ref: BranchRef | None = None
    head_ref: BranchRef | None = None
    comments: list[Comment] = Field(default_factory=list)
    comment_count: int | None = None
    review_comments: list[ReviewComment] = Field(default_factory=list)
    review_comment_count: int | None = None
    reviews: list[Review] = Field(default_factory=list)
    review_count: int | None = None
    commits: list[Commit] = Field(default_factory=list)
    commit_count: int | None = None
    files: list[ChangedFile] = Field(default_factory=list)
    changed_file_count: int | None = Field(
        default=None,
        validation_alias=AliasChoices("changedFiles", "changedFileCount", "changed_file_count"),
        serialization_alias="changedFileCount",
    )
    additions: int | None = None
    deletions: int | None = None
    reactions: Reactions | None = None
    auto_merge: AutoMerge | None = Field(
        default=None,
        validation_alias=AliasChoices("autoMergeRequest", "autoMerge", "auto_merge"),
        serialization_alias="autoMerge",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    last_edited_at: datetime | None = None
    merged_by: Actor | None = None
    url: str | None = None
    linked_issues: list[IssueRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices("closingIssuesReferences", "linkedIssues", "linked_issues"),
        serialization_alias="linkedIssues",
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

    @model_validator(mode="before")
    @classmethod
    def flatten_connections(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        fill_count(data, "comments", "commentCount")
        fill_count(data, "reviews", "reviewCount")
        fill_count(data, "commits", "commitCount")
        reactions_from(data)

        if "reviewRequests" in data:
            requested = [
                node["requestedReviewer"]
                for node in connection_nodes(data.pop("reviewRequests"))
                if isinstance(node, dict) and isinstance(node.get("requestedReviewer"), dict)
            ]
            data.setdefault(
                "requestedReviewers",
                [r for r in requested if r.get("__typename", "User") == "User"],
            )
            data.setdefault(
                "requestedTeams", [r for r in requested if r.get("__typename") == "Team"]
            )

        if "reviewComments" not in data and "review_comments" not in data:
            flattened = []
            for review in connection_nodes(data.get("reviews")):
                if isinstance(review, dict):
                    flattened.extend(connection_nodes(review.get("comments")))
            data["reviewComments"] = flattened
        fill_count(data, "reviewComments", "reviewCommentCount")
        return data

    @field_validator(
        "assignees", "requested_reviewers", "requested_teams", "labels", "projects",
        "comments", "review_comments", "reviews", "commits", "files",
        "linked_issues", "timeline",
        mode="before",
    )
    @classmethod
    def unwrap_nodes(cls, v: Any) -> Any:
        return connection_nodes(v)

    @field_validator("merge_commit_sha", mode="before")
    @classmethod
    def commit_oid(cls, v: Any) -> Any:
        return _oid(v)

    @field_validator(
        "locked", "is_draft", "merged", "can_be_rebased", "maintainer_can_modify",
        "viewer_can_subscribe", "viewer_can_update",
        mode="before",
    )
    @classmethod
    def null_is_false(cls, v: Any) -> Any:
        return False if v is None else v
