"""
Export snapshot - the read model consumed by the dashboard.

Builds `{groups: [...], ungrouped: [...]}` from the store. Each store read
takes the lock on its own, so a snapshot taken mid-sync can mix repositories
from before and after the sync, but never a half-written repository.
"""
import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, List, Optional

from overall.core.priority import repo_status_priority, is_unmerged, worst_priority
from overall.core.store import Store
from overall.models import Repository, PullRequestState

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = 'repos.json'
UNKNOWN_LANGUAGE = 'Unknown'


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def build_repo_entry(store: Store, repo: Repository) -> Dict[str, Any]:
    """Serialize one repository with its branches, commits and pull requests."""
    branches = store.list_branches(repo.id)
    pull_requests = store.list_pull_requests(repo.id)
    local_status = store.get_local_repo_status(repo.id)

    branch_entries = []
    for branch in branches:
        commits = store.list_commits(branch.id)
        branch_entries.append({
            'name': branch.name,
            'sha': branch.sha,
            'aheadBy': branch.ahead_by,
            'behindBy': branch.behind_by,
            'status': branch.status.value,
            'lastCommitDate': _iso(branch.last_commit_date),
            'commits': [
                {
                    'sha': commit.sha,
                    'message': commit.message,
                    'authorName': commit.author_name,
                    'authorEmail': commit.author_email,
                    'authoredDate': _iso(commit.authored_date),
                    'committerName': commit.committer_name,
                    'committerEmail': commit.committer_email,
                    'committedDate': _iso(commit.committed_date),
                }
                for commit in commits
            ],
        })

    return {
        'id': repo.id,
        'owner': repo.owner,
        'name': repo.name,
        'language': repo.language or UNKNOWN_LANGUAGE,
        'lastPush': _iso(repo.pushed_at),
        'branches': branch_entries,
        'pullRequests': [
            {
                'number': pr.number,
                'title': pr.title,
                'state': pr.state.value,
                'createdAt': _iso(pr.created_at),
                'updatedAt': _iso(pr.updated_at),
            }
            for pr in pull_requests
        ],
        'unmergedCount': sum(1 for branch in branches if is_unmerged(branch)),
        'prCount': sum(1 for pr in pull_requests if pr.state == PullRequestState.OPEN),
        'statusPriority': int(repo_status_priority(branches, local_status)),
    }


def build_snapshot(store: Store) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build the full export snapshot.

    Groups come in display order; repositories within a group and in the
    ungrouped list come most recently pushed first.
    """
    groups = []
    for group in store.list_groups():
        repos = [build_repo_entry(store, repo) for repo in store.repos_in_group(group.id)]
        groups.append({
            'id': group.id,
            'name': group.name,
            'displayOrder': group.display_order,
            'worstPriority': int(worst_priority(repo['statusPriority'] for repo in repos)),
            'repos': repos,
        })

    ungrouped = [build_repo_entry(store, repo) for repo in store.ungrouped_repos()]

    return {'groups': groups, 'ungrouped': ungrouped}


def write_snapshot(store: Store, path: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build the snapshot and write it as JSON.

    The file is written to a temporary sibling and renamed into place so the
    dashboard never reads a partial file.

    Returns:
        The snapshot that was written
    """
    snapshot = build_snapshot(store)

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # Unique per call so concurrent writers never share a temporary file
    fd, tmp_path = tempfile.mkstemp(dir=directory or ".", prefix=".repos_", suffix=".json.tmp")
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(snapshot, f, indent=2)
            f.write('\n')
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

    repo_count = len(snapshot['ungrouped']) + sum(len(g['repos']) for g in snapshot['groups'])
    logger.info(f"Wrote snapshot of {repo_count} repositories in {len(snapshot['groups'])} groups to {path}")
    return snapshot
