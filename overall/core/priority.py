"""
Repository priority scoring.

Lower is more urgent, so the worst repository in a group is simply the minimum.
"""
import enum
from typing import Any, Dict, Iterable, List, Optional

from overall.core.errors import ValidationError


class RepoPriority(enum.IntEnum):
    """Traffic-light urgency class of a repository"""
    NEEDS_SYNC = 0     # red
    LOCAL_CHANGES = 1  # yellow
    STALE = 2          # white
    COMPLETE = 3       # green


def is_unmerged(branch) -> bool:
    """A branch with commits ahead of the default branch and nothing to catch up on."""
    return branch.ahead_by > 0 and branch.behind_by == 0


def is_out_of_sync(branch) -> bool:
    """A branch that has diverged from the default branch in either direction."""
    return branch.ahead_by > 0 or branch.behind_by > 0


def repo_status_priority(branches: Iterable, local_status=None) -> RepoPriority:
    """
    Score a repository from its branches and its local checkout status.

    Args:
        branches: Branch rows (anything with ahead_by / behind_by)
        local_status: LocalRepoStatus row, or None when there is no local checkout

    Returns:
        RepoPriority, first matching rule wins
    """
    branches = list(branches)

    if local_status is not None and (local_status.unpushed_commits > 0 or local_status.behind_commits > 0):
        return RepoPriority.NEEDS_SYNC

    if any(is_out_of_sync(b) for b in branches):
        return RepoPriority.NEEDS_SYNC

    if local_status is not None and local_status.uncommitted_files > 0:
        return RepoPriority.LOCAL_CHANGES

    if any(is_unmerged(b) for b in branches):
        return RepoPriority.STALE

    return RepoPriority.COMPLETE


def worst_priority(priorities: Iterable[int]) -> RepoPriority:
    """Most urgent priority among a group's members; an empty group is complete."""
    return RepoPriority(min(priorities, default=RepoPriority.COMPLETE))


# Secondary sort keys for snapshot repository entries
SORT_COLUMNS = {
    'name': lambda entry: entry['name'].lower(),
    'language': lambda entry: (entry.get('language') or '').lower(),
    'lastPush': lambda entry: entry.get('lastPush') or '',
}


def sort_repositories(entries: Iterable[Dict[str, Any]], column: Optional[str] = None,
                      ascending: bool = True) -> List[Dict[str, Any]]:
    """
    Sort snapshot repository entries by priority, breaking ties with `column`.

    Args:
        entries: Repository entries as built by the snapshot builder
        column: One of SORT_COLUMNS, or None to keep input order within a class
        ascending: Direction of the secondary key

    Returns:
        A new sorted list

    Raises:
        ValidationError: If the column is unknown
    """
    entries = list(entries)
    if column is not None:
        if column not in SORT_COLUMNS:
            raise ValidationError(f"Unknown sort column '{column}'")
        entries.sort(key=SORT_COLUMNS[column], reverse=not ascending)

    # Stable, so the secondary order survives within each class
    entries.sort(key=lambda entry: entry['statusPriority'])
    return entries
