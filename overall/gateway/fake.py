"""
In-memory gateways serving canned data.

Used by the tests and handy for running the server without network access.
Both fakes record every call so tests can assert on what was asked for.
"""
import copy
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from overall.core.errors import GatewayError
from overall.core.records import (
    RepositoryInfo, BranchInfo, PullRequestInfo, CommitInfo, LocalStatusInfo, CreatedPullRequest
)
from overall.gateway.base import VcsGateway, LocalScanner
from overall.gateway.github_cli import DEFAULT_PR_BODY, default_pr_title


class FakeGateway(VcsGateway):
    """
    Canned code host.

    Example:
        >>> gateway = FakeGateway()
        >>> gateway.add_repo(info, branches=[...], pull_requests=[...])
        >>> gateway.fail('fetch_pull_requests', 'acme/widgets')
    """

    def __init__(self):
        self.repos: Dict[str, List[RepositoryInfo]] = defaultdict(list)
        self.branches: Dict[str, List[BranchInfo]] = {}
        self.pull_requests: Dict[str, List[PullRequestInfo]] = {}
        self.commits: Dict[Tuple[str, str], List[CommitInfo]] = {}
        self.existing_prs: Dict[Tuple[str, str], str] = {}

        self.failures: Dict[Tuple[str, str], str] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.created_prs: List[CreatedPullRequest] = []

    def add_repo(self, info: RepositoryInfo, branches=(), pull_requests=(),
                 commits: Optional[Dict[str, List[CommitInfo]]] = None):
        """Register a repository with its branches, pull requests and per-branch commits."""
        self.repos[info.owner].append(info)
        self.branches[info.id] = list(branches)
        self.pull_requests[info.id] = list(pull_requests)
        for branch_name, branch_commits in (commits or {}).items():
            self.commits[(info.id, branch_name)] = list(branch_commits)

    def fail(self, method: str, key: str, message: Optional[str] = None):
        """
        Make a method fail for one key.

        The key is the owner for list_repos, the repository id otherwise, and
        'repo_id@branch' for fetch_commits and create_pull_request.
        """
        self.failures[(method, key)] = message or f"{method} failed for {key}"

    def clear_failures(self):
        self.failures.clear()

    def calls_to(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def _record(self, method: str, key: str, *args):
        self.calls.append((method, args))
        if (method, key) in self.failures:
            raise GatewayError(self.failures[(method, key)])

    def list_repos(self, owner: str, limit: int) -> List[RepositoryInfo]:
        self._record('list_repos', owner, owner, limit)
        return copy.deepcopy(self.repos.get(owner, [])[:limit])

    def fetch_branches(self, repo_id: str) -> List[BranchInfo]:
        self._record('fetch_branches', repo_id, repo_id)
        return copy.deepcopy(self.branches.get(repo_id, []))

    def fetch_pull_requests(self, repo_id: str) -> List[PullRequestInfo]:
        self._record('fetch_pull_requests', repo_id, repo_id)
        return copy.deepcopy(self.pull_requests.get(repo_id, []))

    def fetch_commits(self, repo_id: str, branch_name: str, branch_id: int, limit: int = 50) -> List[CommitInfo]:
        self._record('fetch_commits', f"{repo_id}@{branch_name}", repo_id, branch_name, branch_id, limit)
        return copy.deepcopy(self.commits.get((repo_id, branch_name), [])[:limit])

    def create_pull_request(self, repo_id: str, branch_name: str,
                            title: Optional[str] = None, body: Optional[str] = None) -> str:
        self._record('create_pull_request', f"{repo_id}@{branch_name}", repo_id, branch_name, title, body)

        existing = self.existing_prs.get((repo_id, branch_name))
        if existing:
            return existing

        url = f"https://github.com/{repo_id}/pull/{len(self.created_prs) + 1}"
        self.created_prs.append(CreatedPullRequest(
            repo_id=repo_id,
            branch_name=branch_name,
            title=title or default_pr_title(branch_name),
            body=body or DEFAULT_PR_BODY,
            url=url,
        ))
        self.existing_prs[(repo_id, branch_name)] = url
        return url


class FakeLocalScanner(LocalScanner):
    """Canned local checkouts, keyed by root directory and checkout path."""

    def __init__(self):
        self.checkouts: Dict[str, List[str]] = defaultdict(list)
        self.statuses: Dict[str, LocalStatusInfo] = {}
        self.failures: Dict[Tuple[str, str], str] = {}
        self.calls: List[Tuple[str, str]] = []

    def add_checkout(self, root_path: str, status: LocalStatusInfo):
        self.checkouts[root_path].append(status.local_path)
        self.statuses[status.local_path] = status

    def remove_checkout(self, root_path: str, local_path: str):
        self.checkouts[root_path].remove(local_path)
        self.statuses.pop(local_path, None)

    def fail(self, method: str, path: str, message: Optional[str] = None):
        self.failures[(method, path)] = message or f"{method} failed for {path}"

    def _record(self, method: str, path: str):
        self.calls.append((method, path))
        if (method, path) in self.failures:
            raise GatewayError(self.failures[(method, path)])

    def scan_for_repos(self, root_path: str) -> List[str]:
        self._record('scan_for_repos', root_path)
        if root_path not in self.checkouts:
            raise GatewayError(f"Path does not exist: {root_path}")
        return sorted(self.checkouts[root_path])

    def get_repo_status(self, path: str) -> LocalStatusInfo:
        self._record('get_repo_status', path)
        return copy.deepcopy(self.statuses[path])

    def fetch_remote(self, path: str) -> None:
        self._record('fetch_remote', path)
