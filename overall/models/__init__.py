from .base import Base
from .repository import Repository
from .branch import Branch, BranchStatus
from .pull_request import PullRequest, PullRequestState
from .commit import Commit
from .group import Group, RepoGroup
from .local_repo import LocalRepoRoot, LocalRepoStatus
from .config_entry import ConfigEntry

__all__ = ['Base', 'Repository', 'Branch', 'BranchStatus', 'PullRequest', 'PullRequestState', 'Commit',
           'Group', 'RepoGroup', 'LocalRepoRoot', 'LocalRepoStatus', 'ConfigEntry']
