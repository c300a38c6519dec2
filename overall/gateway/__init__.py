from .base import VcsGateway, LocalScanner
from .github_cli import GhCliGateway
from .local_git import GitLocalScanner
from .fake import FakeGateway, FakeLocalScanner

__all__ = ['VcsGateway', 'LocalScanner', 'GhCliGateway', 'GitLocalScanner', 'FakeGateway', 'FakeLocalScanner']
