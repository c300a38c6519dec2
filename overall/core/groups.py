"""
Group management - named display collections of repositories.

A repository is in at most one group. The store enforces that inside each
membership transaction; this layer adds name handling and not-found errors.
"""
import logging
from typing import List, Optional, Sequence

from overall.core.errors import NotFoundError, ValidationError
from overall.core.store import Store
from overall.core.validation import validate_repo_id
from overall.models import Group, Repository

logger = logging.getLogger(__name__)


class GroupManager:
    """Group operations on top of a Store."""

    def __init__(self, store: Store):
        self.store = store

    def list_groups(self) -> List[Group]:
        return self.store.list_groups()

    def members(self, group_id: int) -> List[Repository]:
        self._require_group(group_id)
        return self.store.repos_in_group(group_id)

    def create_group(self, name: str) -> Group:
        """Create a group at the end of the display order."""
        name = self._clean_name(name)
        group = self.store.create_group(name)
        logger.info(f"Created group {group.id} '{group.name}' at position {group.display_order}")
        return group

    def add_repos(self, repo_ids: Sequence[str], group_name: Optional[str] = None,
                  target_group_id: Optional[int] = None) -> Group:
        """
        Add repositories to a group, moving them out of any other group.

        Args:
            repo_ids: Repository ids to add
            group_name: Name for a new group, used when no target is given
            target_group_id: Existing group to add to

        Returns:
            The group the repositories were added to

        Raises:
            ValidationError: If no repositories are given, an id is malformed,
                or neither a target nor a name is given
            NotFoundError: If the target group or a repository does not exist
        """
        if not repo_ids:
            raise ValidationError("No repositories selected")
        for repo_id in repo_ids:
            validate_repo_id(repo_id)
            if self.store.get_repository(repo_id) is None:
                raise NotFoundError(f"Repository {repo_id} not found")

        if target_group_id is not None:
            group = self._require_group(target_group_id)
        else:
            if not group_name or not group_name.strip():
                raise ValidationError("Group name is required when no target group is given")
            group = self.create_group(group_name)

        for repo_id in repo_ids:
            self.store.add_repo_to_group(repo_id, group.id)

        logger.info(f"Added {len(repo_ids)} repositories to group '{group.name}'")
        return group

    def move_repo(self, repo_id: str, target_group_id: Optional[int]) -> None:
        """Move a repository to another group, or ungroup it when target_group_id is None."""
        validate_repo_id(repo_id)

        if target_group_id is None:
            self.store.remove_repo_from_all_groups(repo_id)
            logger.info(f"Ungrouped {repo_id}")
            return

        self.store.move_repo_to_group(repo_id, target_group_id)
        logger.info(f"Moved {repo_id} to group {target_group_id}")

    def rename_group(self, group_id: int, name: str) -> None:
        name = self._clean_name(name)
        if not self.store.rename_group(group_id, name):
            raise NotFoundError(f"Group {group_id} not found")

    def delete_group(self, group_id: int) -> None:
        """Delete a group; its members become ungrouped."""
        if not self.store.delete_group(group_id):
            raise NotFoundError(f"Group {group_id} not found")
        logger.info(f"Deleted group {group_id}")

    def _require_group(self, group_id: int) -> Group:
        group = self.store.get_group(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    @staticmethod
    def _clean_name(name: str) -> str:
        if not name or not name.strip():
            raise ValidationError("Group name cannot be empty")
        return name.strip()
