"""
Leaf types shared by the exported records.

GraphQL wraps lists in connections (`{"totalCount": .., "nodes": [..]}`);
the helpers here flatten those so the exported JSON holds plain arrays.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def connection_nodes(value: Any) -> Any:
    """Unwrap `{"nodes": [...]}` into a list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, dict) and "nodes" in value:
        return [node for node in (value.get("nodes") or []) if node is not None]
    return value


def connection_total(value: Any) -> int | None:
    if isinstance(value, dict):
        total = value.get("totalCount")
        if isinstance(total, int):
            return total
    return None


def fill_count(data: dict[str, Any], source: str, target: str) -> None:
    """Populate `target` from `source.totalCount` unless already set."""
    if data.get(target) is not None:
        return
    total = connection_total(data.get(source))
    if total is not None:
        data[target] = total
    elif isinstance(data.get(source), list):
        data[target] = len(data[source])


class GitHubModel(BaseModel):
    """Base for record types: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Actor(GitHubModel):
    id: str | None = None
    login: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    url: str | None = None


class RepositoryRef(GitHubModel):
    id: str | None = None
    name: str | None = None
    name_with_owner: str | None = None
    url: str | None = None


class Label(GitHubModel):
    id: str | None = None
    name: str | None = None
    description: str | None = None
    color: str | None = None
    is_default: bool = False


class Milestone(GitHubModel):
    id: str | None = None
    title: str | None = None
    description: str | None = None
    state: str | None = None
    due_on: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    url: str | None = None


class ProjectRef(GitHubModel):
    id: str | None = None
    name: str | None = None
    body: str | None = None
    state: str | None = None
    url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_card(cls, data: Any) -> Any:
        # projectCards nodes look like {"project": {...}}
        if isinstance(data, dict) and isinstance(data.get("project"), dict):
            return data["project"]
        return data


_REACTION_FIELDS = {
    "THUMBS_UP": "thumbs_up",
    "THUMBS_DOWN": "thumbs_down",
    "LAUGH": "laugh",
    "HOORAY": "hooray",
    "CONFUSED": "confused",
    "HEART": "heart",
    "ROCKET": "rocket",
    "EYES": "eyes",
}


class Reactions(GitHubModel):
    total_count: int = 0
    thumbs_up: int = 0
    thumbs_down: int = 0
    laugh: int = 0
    hooray: int = 0
    confused: int = 0
    heart: int = 0
    rocket: int = 0
    eyes: int = 0

    @classmethod
    def from_groups(cls, groups: Any) -> "Reactions":
        """Summarise GraphQL `reactionGroups` into per-emoji counts."""
        counts: dict[str, int] = {}
        for group in groups or []:
            if not isinstance(group, dict):
                continue
            field_name = _REACTION_FIELDS.get(str(group.get("content", "")).upper())
            if field_name is None:
                continue
            reactors = group.get("reactors") or group.get("users") or {}
            if not isinstance(reactors, dict):
                raise ValueError(f"reactors for {field_name} must be an object")
            counts[field_name] = int(reactors.get("totalCount", 0) or 0)
        return cls(total_count=sum(counts.values()), **counts)


def reactions_from(data: dict[str, Any]) -> None:
    """Replace `reactionGroups` in a raw node with a `reactions` summary."""
    if "reactions" not in data and "reactionGroups" in data:
        data["reactions"] = Reactions.from_groups(data.pop("reactionGroups"))


class Comment(GitHubModel):
    id: str | None = None
    body: str | None = None
    author: Actor | None = None
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


class IssueRef(GitHubModel):
    id: str | None = None
    number: int | None = None
    title: str | None = None
    state: str | None = None
    url: str | None = None


class PullRequestRef(GitHubModel):
    id: str | None = None
    number: int | None = None
    title: str | None = None
    state: str | None = None
    url: str | None = None


class TimelineItem(GitHubModel):
    id: str | None = None
    type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("__typename", "type"),
        serialization_alias="type",
    )
    created_at: datetime | None = None
    actor: Actor | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_extra(cls, data: Any) -> Any:
        # Event-specific fields (label, source, ...) go into `data`
        if not isinstance(data, dict) or "data" in data:
            return data
        known = {"id", "__typename", "type", "createdAt", "created_at", "actor"}
        extra = {k: v for k, v in data.items() if k not in known}
        base = {k: v for k, v in data.items() if k in known}
        base["data"] = extra
        return base

    @field_validator("data", mode="before")
    @classmethod
    def default_data(cls, v: Any) -> Any:
        return v or {}
