"""Local checkout inspection through the `git` CLI."""
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from overall.core.errors import GatewayError
from overall.core.records import LocalStatusInfo
from overall.gateway.base import LocalScanner
from overall.models.base import utcnow

logger = logging.getLogger(__name__)


def extract_repo_id(local_path: str) -> Optional[str]:
    """
    Derive 'owner/name' from the last two components of a checkout path.

    Checkouts are expected to live at <root>/<owner>/<name>.
    """
    parts = Path(local_path).parts
    if len(parts) < 2 or parts[-2] in ('/', ''):
        return None
    return f"{parts[-2]}/{parts[-1]}"


class GitLocalScanner(LocalScanner):
    """Scans directories for git checkouts and reads their working-copy state."""

    def __init__(self, git_path: str = 'git'):
        self.git_path = git_path

    def _git(self, repo_path: str, args: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                [self.git_path] + args,
                cwd=repo_path,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise GatewayError(f"Failed to run git in {repo_path}: {e}")

    def scan_for_repos(self, root_path: str) -> List[str]:
        root = Path(root_path).expanduser()
        if not root.exists():
            raise GatewayError(f"Path does not exist: {root}")
        if not root.is_dir():
            raise GatewayError(f"Not a directory: {root}")

        return sorted(
            str(entry) for entry in root.iterdir()
            if entry.is_dir() and (entry / '.git').exists()
        )

    def get_current_branch(self, repo_path: str) -> Optional[str]:
        """Current branch name, or None for a detached HEAD or an unreadable checkout."""
        result = self._git(repo_path, ["rev-parse", "--abbrev-ref", "HEAD"])
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if not branch or branch == 'HEAD':
            return None
        return branch

    def count_uncommitted_files(self, repo_path: str) -> int:
        result = self._git(repo_path, ["status", "--porcelain"])
        if result.returncode != 0:
            return 0
        return len([line for line in result.stdout.splitlines() if line.strip()])

    def get_ahead_behind(self, repo_path: str, branch: str) -> tuple[int, int]:
        """
        Commits the branch has that its upstream lacks, and vice versa.

        A branch without an upstream has nothing to push or pull: (0, 0).
        """
        upstream_result = self._git(repo_path, ["rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"])
        if upstream_result.returncode != 0:
            return 0, 0
        upstream = upstream_result.stdout.strip()

        result = self._git(repo_path, ["rev-list", "--left-right", "--count", f"{branch}...{upstream}"])
        if result.returncode != 0:
            return 0, 0

        parts = result.stdout.split()
        if len(parts) != 2:
            return 0, 0
        try:
            return int(parts[0]), int(parts[1])
        except ValueError:
            return 0, 0

    def get_repo_status(self, path: str) -> LocalStatusInfo:
        repo_id = extract_repo_id(path)
        if repo_id is None:
            raise GatewayError(f"Cannot derive a repository id from {path}")

        current_branch = self.get_current_branch(path)
        uncommitted_files = self.count_uncommitted_files(path)
        if current_branch is not None:
            unpushed_commits, behind_commits = self.get_ahead_behind(path, current_branch)
        else:
            unpushed_commits, behind_commits = 0, 0

        return LocalStatusInfo(
            repo_id=repo_id,
            local_path=path,
            current_branch=current_branch,
            uncommitted_files=uncommitted_files,
            unpushed_commits=unpushed_commits,
            behind_commits=behind_commits,
            last_checked=utcnow(),
        )

    def fetch_remote(self, path: str) -> None:
        result = self._git(path, ["fetch", "--all"])
        if result.returncode != 0:
            raise GatewayError(f"Git fetch failed in {path}: {result.stderr.strip()}")
        logger.debug(f"Fetched remotes for {path}")
