"""Routes package for Overall"""
from .groups import groups_bp
from .repos import repos_bp
from .pull_requests import pull_requests_bp
from .local_repos import local_repos_bp

__all__ = ['groups_bp', 'repos_bp', 'pull_requests_bp', 'local_repos_bp']
