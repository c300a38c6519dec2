from abc import ABC, abstractmethod
from typing import List, Optional

from overall.core.records import RepositoryInfo, BranchInfo, PullRequestInfo, CommitInfo, LocalStatusInfo


class VcsGateway(ABC):
    """
    Abstract base class for code-host gateways.
    Implementations can shell out to a CLI, call an API, or serve canned data.
    """

    @abstractmethod
    def list_repos(self, owner: str, limit: int) -> List[RepositoryInfo]:
        """
        List repositories of an owner.

        Args:
            owner: User or organization name
            limit: Maximum number of repositories to return

        Returns:
            Repository records
        """
        pass

    @abstractmethod
    def fetch_branches(self, repo_id: str) -> List[BranchInfo]:
        """
        Fetch all branches with ahead/behind counts against the default branch.

        Args:
            repo_id: Repository id ('owner/name')

        Returns:
            Branch records
        """
        pass

    @abstractmethod
    def fetch_pull_requests(self, repo_id: str) -> List[PullRequestInfo]:
        """
        Fetch pull requests in every state.

        Args:
            repo_id: Repository id ('owner/name')

        Returns:
            Pull request records, not yet linked to branch rows
        """
        pass

    @abstractmethod
    def fetch_commits(self, repo_id: str, branch_name: str, branch_id: int, limit: int = 50) -> List[CommitInfo]:
        """
        Fetch the most recent commits of a branch.

        Args:
            repo_id: Repository id ('owner/name')
            branch_name: Branch to read history from
            branch_id: Stored id of the branch the commits will belong to
            limit: Maximum number of commits

        Returns:
            Commit records, newest first
        """
        pass

    @abstractmethod
    def create_pull_request(self, repo_id: str, branch_name: str,
                            title: Optional[str] = None, body: Optional[str] = None) -> str:
        """
        Open a pull request for a branch.

        Args:
            repo_id: Repository id ('owner/name')
            branch_name: Head branch
            title: Title, derived from the branch name if omitted
            body: Body, a fixed default if omitted

        Returns:
            URL of the pull request; an existing one counts as success
        """
        pass


class LocalScanner(ABC):
    """Abstract base class for local checkout inspection."""

    @abstractmethod
    def scan_for_repos(self, root_path: str) -> List[str]:
        """
        Find checkouts directly under a root directory.

        Returns:
            Paths of the checkouts, sorted
        """
        pass

    @abstractmethod
    def get_repo_status(self, path: str) -> LocalStatusInfo:
        """
        Compute the working-copy status of a checkout.

        Returns:
            LocalStatusInfo for the checkout
        """
        pass

    @abstractmethod
    def fetch_remote(self, path: str) -> None:
        """Refresh remote-tracking refs so behind counts are current."""
        pass
