"""
GraphQL documents for the exported collections.

Each template records which connection under `repository` it pages so the
executor can find `nodes` and `pageInfo` without knowing the query shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ghexport.core.config.models import OrderDirection, OrderField, ResourceKind


@dataclass(frozen=True)
class QueryTemplate:
    """A GraphQL document plus the connection it paginates."""

    name: str
    document: str
    connection: str
    states: tuple[str, ...]


_ACTOR = "login url avatarUrl ... on User { id name } ... on Bot { id } ... on Organization { id name }"

_REACTIONS = """
    reactionGroups { content reactors { totalCount } }
"""

_LABELS = """
    labels(first: 20) { totalCount nodes { id name description color isDefault } }
"""

_MILESTONE = """
    milestone { id title description state dueOn createdAt updatedAt url }
"""

_PROJECTS = """
    projectCards(first: 10) { nodes { project { id name body state url } } }
"""

_COMMENTS = f"""
    comments(first: 50) {{
      totalCount
      nodes {{
        id body createdAt updatedAt lastEditedAt url
        author {{ {_ACTOR} }}
        {_REACTIONS}
      }}
    }}
"""

_TIMELINE = f"""
    timelineItems(first: 50) {{
      nodes {{
        __typename
        ... on Node {{ id }}
        ... on ClosedEvent {{ createdAt actor {{ {_ACTOR} }} }}
        ... on ReopenedEvent {{ createdAt actor {{ {_ACTOR} }} }}
        ... on LabeledEvent {{ createdAt actor {{ {_ACTOR} }} label {{ name }} }}
        ... on UnlabeledEvent {{ createdAt actor {{ {_ACTOR} }} label {{ name }} }}
        ... on AssignedEvent {{ createdAt actor {{ {_ACTOR} }} }}
        ... on CrossReferencedEvent {{ createdAt actor {{ {_ACTOR} }} }}
      }}
    }}
"""

ISSUE_QUERY = f"""
query ExportIssues(
  $owner: String!, $name: String!, $first: Int!, $after: String,
  $states: [IssueState!], $orderBy: IssueOrder
) {{
  repository(owner: $owner, name: $name) {{
    issues(first: $first, after: $after, states: $states, orderBy: $orderBy) {{
      totalCount
      pageInfo {{ hasNextPage endCursor }}
      nodes {{
        id number title body state locked activeLockReason url
        createdAt updatedAt closedAt lastEditedAt isPinned
        viewerSubscription viewerCanSubscribe viewerCanUpdate
        stateReason
        author {{ {_ACTOR} }}
        repository {{ id name nameWithOwner url }}
        assignees(first: 20) {{ nodes {{ id login name avatarUrl url }} }}
        {_LABELS}
        {_MILESTONE}
        {_PROJECTS}
        {_COMMENTS}
        {_REACTIONS}
        {_TIMELINE}
        closedByPullRequestsReferences(first: 10) {{
          nodes {{ id number title state url }}
        }}
      }}
    }}
  }}
}}
"""

PULL_REQUEST_QUERY = f"""
query ExportPullRequests(
  $owner: String!, $name: String!, $first: Int!, $after: String,
  $states: [PullRequestState!], $orderBy: IssueOrder
) {{
  repository(owner: $owner, name: $name) {{
    pullRequests(first: $first, after: $after, states: $states, orderBy: $orderBy) {{
      totalCount
      pageInfo {{ hasNextPage endCursor }}
      nodes {{
        id number title body state locked activeLockReason url isDraft
        merged mergeable mergeStateStatus mergeCommit {{ oid }}
        canBeRebased maintainerCanModify
        additions deletions changedFiles
        createdAt updatedAt closedAt mergedAt lastEditedAt
        viewerSubscription viewerCanSubscribe viewerCanUpdate
        author {{ {_ACTOR} }}
        mergedBy {{ {_ACTOR} }}
        repository {{ id name nameWithOwner url }}
        assignees(first: 20) {{ nodes {{ id login name avatarUrl url }} }}
        reviewRequests(first: 20) {{
          nodes {{
            requestedReviewer {{
              __typename
              ... on User {{ id login name avatarUrl url }}
              ... on Team {{ id name slug description url }}
            }}
          }}
        }}
        {_LABELS}
        {_MILESTONE}
        {_PROJECTS}
        baseRef {{ id name prefix repository {{ id name nameWithOwner url }} }}
        headRef {{ id name prefix repository {{ id name nameWithOwner url }} }}
        {_COMMENTS}
        reviews(first: 30) {{
          totalCount
          nodes {{
            id body state submittedAt url
            commit {{ oid }}
            author {{ {_ACTOR} }}
            comments(first: 30) {{
              totalCount
              nodes {{
                id body path position originalPosition diffHunk
                createdAt updatedAt lastEditedAt url
                commit {{ oid }} originalCommit {{ oid }}
                author {{ {_ACTOR} }}
                {_REACTIONS}
              }}
            }}
          }}
        }}
        commits(last: 30) {{
          totalCount
          nodes {{
            commit {{
              id oid message authoredDate committedDate url
              author {{ name user {{ id login name avatarUrl url }} }}
              committer {{ name user {{ id login name avatarUrl url }} }}
              statusCheckRollup {{
                contexts(first: 30) {{
                  nodes {{
                    __typename
                    ... on CheckRun {{
                      id name status conclusion detailsUrl externalId startedAt completedAt
                    }}
                    ... on StatusContext {{
                      id context state description targetUrl createdAt
                      creator {{ {_ACTOR} }}
                    }}
                  }}
                }}
              }}
            }}
          }}
        }}
        files(first: 100) {{
          totalCount
          nodes {{ path additions deletions changeType }}
        }}
        autoMergeRequest {{ mergeMethod enabledAt enabledBy {{ {_ACTOR} }} }}
        {_REACTIONS}
        {_TIMELINE}
        closingIssuesReferences(first: 10) {{
          nodes {{ id number title state url }}
        }}
      }}
    }}
  }}
}}
"""

ISSUE_TEMPLATE = QueryTemplate(
    name="issues",
    document=ISSUE_QUERY,
    connection="issues",
    states=("OPEN", "CLOSED"),
)

PULL_REQUEST_TEMPLATE = QueryTemplate(
    name="pull_requests",
    document=PULL_REQUEST_QUERY,
    connection="pullRequests",
    states=("OPEN", "CLOSED", "MERGED"),
)

_TEMPLATES = {
    ResourceKind.ISSUES: ISSUE_TEMPLATE,
    ResourceKind.PULL_REQUESTS: PULL_REQUEST_TEMPLATE,
}


def template_for(kind: ResourceKind) -> QueryTemplate:
    return _TEMPLATES[kind]


def build_variables(
    owner: str,
    name: str,
    first: int,
    after: str | None,
    states: tuple[str, ...],
    order_field: OrderField = OrderField.UPDATED_AT,
    order_direction: OrderDirection = OrderDirection.DESC,
) -> dict[str, Any]:
    """Build GraphQL variables for one page request.

    `after` is only included when a non-empty cursor is known.
    """
    variables: dict[str, Any] = {
        "owner": owner,
        "name": name,
        "first": first,
        "states": list(states),
        "orderBy": {"field": order_field.value, "direction": order_direction.value},
    }
    if after:
        variables["after"] = after
    return variables
