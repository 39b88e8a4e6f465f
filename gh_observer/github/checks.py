"""Check rollup query and normalization of its contexts.

GitHub reports two kinds of contexts for a commit: Actions/Apps ``CheckRun``
nodes and legacy commit ``StatusContext`` nodes. Both are flattened into
:class:`~gh_observer.models.CheckRun` here.
"""

import logging
from typing import Any

from ..models import Annotation, CheckConclusion, CheckRun, CheckStatus, Snapshot
from .client import GitHubClient
from .exceptions import GitHubNotFoundError
from .pulls import parse_timestamp

logger = logging.getLogger(__name__)

CHECK_ROLLUP_QUERY = """
query($owner: String!, $repo: String!, $prNumber: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $prNumber) {
      commits(last: 1) {
        nodes {
          commit {
            statusCheckRollup {
              contexts(first: 100) {
                nodes {
                  __typename
                  ... on CheckRun {
                    name
                    summary
                    status
                    conclusion
                    startedAt
                    completedAt
                    detailsUrl
                    annotations(first: 5) {
                      nodes {
                        message
                        path
                        title
                        annotationLevel
                        location { start { line } }
                      }
                    }
                    checkSuite { workflowRun { workflow { name } } }
                  }
                  ... on StatusContext {
                    context
                    description
                    state
                    targetUrl
                  }
                }
              }
            }
          }
        }
      }
    }
  }
  rateLimit { limit remaining used resetAt }
}
"""

# StatusContext state -> (status, conclusion)
_STATUS_CONTEXT_STATES: dict[str, tuple[CheckStatus, CheckConclusion | str]] = {
    "success": (CheckStatus.COMPLETED, CheckConclusion.SUCCESS),
    "error": (CheckStatus.COMPLETED, CheckConclusion.FAILURE),
    "failure": (CheckStatus.COMPLETED, CheckConclusion.FAILURE),
    "pending": (CheckStatus.QUEUED, ""),
}

_ANNOTATED_CONCLUSIONS = (CheckConclusion.FAILURE, CheckConclusion.TIMED_OUT)


def _workflow_name(node: dict[str, Any]) -> str:
    suite = node.get("checkSuite") or {}
    run = suite.get("workflowRun") or {}
    workflow = run.get("workflow") or {}
    return workflow.get("name") or ""


def _annotations(node: dict[str, Any]) -> tuple[Annotation, ...]:
    nodes = (node.get("annotations") or {}).get("nodes") or []
    annotations = []
    for item in nodes:
        start = ((item.get("location") or {}).get("start")) or {}
        annotations.append(
            Annotation(
                message=item.get("message") or "",
                path=item.get("path") or "",
                start_line=int(start.get("line") or 0),
                title=item.get("title") or "",
                level=(item.get("annotationLevel") or "").lower(),
            )
        )
    return tuple(annotations)


def normalize_check_run(node: dict[str, Any]) -> CheckRun:
    """Flatten a GraphQL ``CheckRun`` node.

    Annotations are kept only for checks that failed or timed out.
    """
    conclusion = CheckConclusion.parse(node.get("conclusion"))
    annotations: tuple[Annotation, ...] = ()
    if conclusion in _ANNOTATED_CONCLUSIONS:
        annotations = _annotations(node)

    return CheckRun(
        name=node.get("name") or "",
        workflow_name=_workflow_name(node),
        summary=node.get("summary") or "",
        status=CheckStatus.parse(node.get("status")),
        conclusion=conclusion,
        started_at=parse_timestamp(node.get("startedAt")),
        completed_at=parse_timestamp(node.get("completedAt")),
        details_url=node.get("detailsUrl") or "",
        annotations=annotations,
    )


def normalize_status_context(node: dict[str, Any]) -> CheckRun:
    """Map a legacy commit status onto the check run shape."""
    state = (node.get("state") or "").lower()
    status, conclusion = _STATUS_CONTEXT_STATES.get(state, (CheckStatus.QUEUED, ""))
    return CheckRun(
        name=node.get("context") or "",
        summary=node.get("description") or "",
        status=status,
        conclusion=conclusion,
        details_url=node.get("targetUrl") or "",
    )


def normalize_contexts(nodes: list[dict[str, Any]]) -> list[CheckRun]:
    """Normalize rollup context nodes, skipping unknown typenames."""
    checks: list[CheckRun] = []
    for node in nodes:
        typename = node.get("__typename")
        if typename == "CheckRun":
            checks.append(normalize_check_run(node))
        elif typename == "StatusContext":
            checks.append(normalize_status_context(node))
        else:
            logger.debug(f"Skipping unsupported rollup context {typename!r}")
    return checks


def _rollup_nodes(data: dict[str, Any], pr_number: int) -> list[dict[str, Any]]:
    repository = data.get("repository")
    if repository is None:
        raise GitHubNotFoundError("repository not found")

    pull = repository.get("pullRequest")
    if pull is None:
        raise GitHubNotFoundError(f"pull request #{pr_number} not found")

    commits = (pull.get("commits") or {}).get("nodes") or []
    if not commits:
        return []

    rollup = (commits[0].get("commit") or {}).get("statusCheckRollup") or {}
    return (rollup.get("contexts") or {}).get("nodes") or []


async def fetch_check_snapshot(
    client: GitHubClient, owner: str, repo: str, pr_number: int
) -> Snapshot:
    """Fetch every check context of the PR's head commit as one snapshot.

    Args:
        client: GitHub API client
        owner: Repository owner
        repo: Repository name
        pr_number: Pull request number

    Returns:
        Snapshot with normalized checks and the remaining GraphQL budget
    """
    data = await client.graphql(
        CHECK_ROLLUP_QUERY,
        {"owner": owner, "repo": repo, "prNumber": pr_number},
    )

    checks = normalize_contexts(_rollup_nodes(data, pr_number))
    remaining = client.rate_limiter.remaining("graphql")
    if remaining is None:
        remaining = 0

    logger.debug(
        f"Fetched {len(checks)} checks for {owner}/{repo}#{pr_number} "
        f"(rate limit remaining: {remaining})"
    )
    return Snapshot.from_checks(checks, rate_limit_remaining=remaining)
