"""
GitHub gateway backed by the `gh` CLI.

Requires `gh` to be installed and authenticated. Every call blocks until the
subprocess exits; there is no timeout at this layer.
"""
import json
import logging
import subprocess
from typing import Any, List, Optional
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from overall.core.errors import GatewayError
from overall.core.records import RepositoryInfo, BranchInfo, PullRequestInfo, CommitInfo
from overall.core.validation import validate_owner, validate_repo_id
from overall.gateway.base import VcsGateway
from overall.gateway.gh_payloads import (
    GhRepo, GhRepoDetail, GhBranch, GhCommit, GhComparison, GhPullRequest
)
from overall.models import PullRequestState

logger = logging.getLogger(__name__)

REPO_LIST_FIELDS = "name,owner,pushedAt,createdAt,updatedAt,primaryLanguage,description,isFork,defaultBranchRef"
PR_LIST_FIELDS = "number,state,title,createdAt,updatedAt,headRefName"
PR_LIST_LIMIT = 100
DEFAULT_PR_BODY = "Created via Overall"

_PR_STATES = {
    'OPEN': PullRequestState.OPEN,
    'CLOSED': PullRequestState.CLOSED,
    'MERGED': PullRequestState.MERGED,
}


def parse_json_documents(text: str) -> List[Any]:
    """
    Parse one or more concatenated JSON documents.

    `gh api --paginate` prints one array per page back to back, which a plain
    json.loads rejects.
    """
    decoder = json.JSONDecoder()
    documents = []
    text = text.strip()
    idx = 0
    while idx < len(text):
        document, idx = decoder.raw_decode(text, idx)
        documents.append(document)
        while idx < len(text) and text[idx].isspace():
            idx += 1
    return documents


def default_pr_title(branch_name: str) -> str:
    return branch_name.replace('-', ' ').replace('_', ' ')


class GhCliGateway(VcsGateway):
    """
    Code-host gateway that shells out to `gh`.

    Example:
        >>> gateway = GhCliGateway()
        >>> repos = gateway.list_repos('acme', limit=10)
    """

    def __init__(self, gh_path: str = 'gh'):
        self.gh_path = gh_path

    def _run(self, args: List[str], action: str) -> str:
        """
        Run a gh command and return its stdout.

        Raises:
            GatewayError: If gh is missing or exits non-zero
        """
        cmd = [self.gh_path] + args
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise GatewayError(f"Failed to run gh command: {e}")

        if result.returncode != 0:
            error_msg = result.stderr.strip() or "Unknown error"
            raise GatewayError(f"Failed to {action}: {error_msg}")

        return result.stdout

    def _parse(self, output: str, payload_type, action: str, paginated: bool = False):
        """Decode gh output and validate it against a payload model."""
        try:
            if paginated:
                data = []
                for page in parse_json_documents(output):
                    data.extend(page if isinstance(page, list) else [page])
            else:
                data = json.loads(output)
            return TypeAdapter(payload_type).validate_python(data)
        except json.JSONDecodeError as e:
            raise GatewayError(f"Failed to parse gh output while trying to {action}: {e}")
        except PydanticValidationError as e:
            raise GatewayError(f"Unexpected gh output while trying to {action}: {e}")

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def list_repos(self, owner: str, limit: int) -> List[RepositoryInfo]:
        validate_owner(owner)
        action = f"list repositories for {owner}"
        output = self._run(
            ["repo", "list", owner, "--limit", str(limit), "--json", REPO_LIST_FIELDS],
            action,
        )
        gh_repos = self._parse(output, List[GhRepo], action)

        repos = []
        for gh_repo in gh_repos:
            repos.append(RepositoryInfo(
                owner=gh_repo.owner.login,
                name=gh_repo.name,
                pushed_at=gh_repo.pushed_at or gh_repo.created_at,
                created_at=gh_repo.created_at,
                updated_at=gh_repo.updated_at,
                language=gh_repo.primary_language.name if gh_repo.primary_language else None,
                description=gh_repo.description or None,
                default_branch=gh_repo.default_branch_ref.name if gh_repo.default_branch_ref else 'main',
                is_fork=gh_repo.is_fork,
            ))
        logger.info(f"Listed {len(repos)} repositories for {owner}")
        return repos

    def get_default_branch(self, repo_id: str) -> str:
        action = f"get default branch of {repo_id}"
        output = self._run(["api", f"repos/{repo_id}"], action)
        return self._parse(output, GhRepoDetail, action).default_branch

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def fetch_branches(self, repo_id: str) -> List[BranchInfo]:
        validate_repo_id(repo_id)
        action = f"fetch branches of {repo_id}"
        output = self._run(["api", f"repos/{repo_id}/branches", "--paginate"], action)
        gh_branches = self._parse(output, List[GhBranch], action, paginated=True)

        default_branch = self.get_default_branch(repo_id)

        branches = []
        for gh_branch in gh_branches:
            last_commit_date = self._fetch_commit_date(repo_id, gh_branch.commit.sha)
            if gh_branch.name == default_branch:
                ahead_by, behind_by = 0, 0
            else:
                ahead_by, behind_by = self._compare(repo_id, default_branch, gh_branch.name)

            branches.append(BranchInfo(
                name=gh_branch.name,
                sha=gh_branch.commit.sha,
                last_commit_date=last_commit_date,
                ahead_by=ahead_by,
                behind_by=behind_by,
            ))
        return branches

    def _fetch_commit_date(self, repo_id: str, sha: str):
        action = f"fetch commit {sha[:8]} of {repo_id}"
        output = self._run(["api", f"repos/{repo_id}/commits/{sha}"], action)
        return self._parse(output, GhCommit, action).commit.author.date

    def _compare(self, repo_id: str, base: str, head: str) -> tuple[int, int]:
        """Ahead/behind of head against base; an unavailable comparison counts as no divergence."""
        action = f"compare {base}...{head} in {repo_id}"
        try:
            output = self._run(
                ["api", f"repos/{repo_id}/compare/{quote(base, safe='')}...{quote(head, safe='')}"],
                action,
            )
            comparison = self._parse(output, GhComparison, action)
        except GatewayError as e:
            logger.warning(f"Could not compare {head} with {base} in {repo_id}, assuming no divergence: {e}")
            return 0, 0
        return comparison.ahead_by, comparison.behind_by

    # ------------------------------------------------------------------
    # Pull requests and commits
    # ------------------------------------------------------------------

    def fetch_pull_requests(self, repo_id: str) -> List[PullRequestInfo]:
        validate_repo_id(repo_id)
        action = f"fetch pull requests of {repo_id}"
        output = self._run(
            ["pr", "list", "-R", repo_id, "--state", "all",
             "--json", PR_LIST_FIELDS, "--limit", str(PR_LIST_LIMIT)],
            action,
        )
        gh_prs = self._parse(output, List[GhPullRequest], action)

        return [
            PullRequestInfo(
                number=gh_pr.number,
                state=_PR_STATES.get(gh_pr.state.upper(), PullRequestState.CLOSED),
                title=gh_pr.title,
                created_at=gh_pr.created_at,
                updated_at=gh_pr.updated_at,
                head_branch=gh_pr.head_ref_name,
            )
            for gh_pr in gh_prs
        ]

    def fetch_commits(self, repo_id: str, branch_name: str, branch_id: int, limit: int = 50) -> List[CommitInfo]:
        validate_repo_id(repo_id)
        action = f"fetch commits of {repo_id}@{branch_name}"
        # First page only; history beyond the limit is never displayed
        output = self._run(
            ["api", f"repos/{repo_id}/commits?sha={quote(branch_name, safe='')}&per_page={limit}"],
            action,
        )
        gh_commits = self._parse(output, List[GhCommit], action)

        return [
            CommitInfo(
                sha=gh_commit.sha,
                message=gh_commit.commit.message,
                author_name=gh_commit.commit.author.name,
                author_email=gh_commit.commit.author.email,
                authored_date=gh_commit.commit.author.date,
                committer_name=gh_commit.commit.committer.name,
                committer_email=gh_commit.commit.committer.email,
                committed_date=gh_commit.commit.committer.date,
            )
            for gh_commit in gh_commits[:limit]
        ]

    def create_pull_request(self, repo_id: str, branch_name: str,
                            title: Optional[str] = None, body: Optional[str] = None) -> str:
        validate_repo_id(repo_id)
        title = title or default_pr_title(branch_name)
        body = body or DEFAULT_PR_BODY

        cmd = [self.gh_path, "pr", "create", "--repo", repo_id, "--head", branch_name,
               "--title", title, "--body", body]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise GatewayError(f"Failed to run gh command: {e}")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            # gh prints the existing pull request's URL on the last line
            if "already exists" in stderr:
                last_line = stderr.splitlines()[-1].strip()
                if last_line.startswith("https://github.com"):
                    logger.info(f"Pull request for {repo_id}@{branch_name} already exists: {last_line}")
                    return last_line
            raise GatewayError(f"Failed to create PR for branch {branch_name}: {stderr or 'Unknown error'}")

        url = result.stdout.strip()
        logger.info(f"Created pull request for {repo_id}@{branch_name}: {url}")
        return url
