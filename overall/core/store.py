"""
Data store - durable storage for repositories, branches, pull requests,
commits, groups, local checkout status and config.

Child rows (branches, pull requests, commits) follow a replace-wholesale
lifecycle: every sync deletes the previous set for the parent and inserts the
fresh one, so nothing removed upstream can survive a rescan.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from overall.core.errors import (
    StoreError, ConstraintViolationError, DuplicateLocalRootError, CorruptRecordError, NotFoundError
)
from overall.core.records import RepositoryInfo, BranchInfo, PullRequestInfo, CommitInfo, LocalStatusInfo
from overall.models import (
    Repository, Branch, BranchStatus, PullRequest, Commit, Group, RepoGroup,
    LocalRepoRoot, LocalRepoStatus, ConfigEntry
)
from overall.models.base import Base, create_db_engine, utcnow

logger = logging.getLogger(__name__)


class Store:
    """
    Single shared store guarded by one lock.

    Every public method opens its own session, holds the lock for exactly that
    transaction and returns detached rows. Callers must never hold the lock
    across a remote call, and since no method calls another, they cannot.
    """

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True):
        """
        Args:
            database_url: SQLAlchemy database URL
            echo: Whether to echo SQL statements
            create_tables: Create missing tables on startup
        """
        self.database_url = database_url
        self.engine = create_db_engine(database_url, echo=echo)
        if create_tables:
            Base.metadata.create_all(bind=self.engine)

        self._Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self._lock = threading.Lock()

    def close(self):
        self.engine.dispose()

    @contextmanager
    def _session(self):
        """Run one locked transaction, translating database failures into StoreError subclasses."""
        with self._lock:
            db = self._Session()
            try:
                yield db
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConstraintViolationError(f"Constraint violated: {e.orig}") from e
            except SQLAlchemyError as e:
                db.rollback()
                if isinstance(getattr(e, 'orig', None), ValueError):
                    raise CorruptRecordError(f"Corrupt record: {e.orig}") from e
                raise StoreError(f"Database error: {e}") from e
            except ValueError as e:
                # Raised while reading back a stored value, e.g. an unparseable timestamp
                db.rollback()
                raise CorruptRecordError(f"Corrupt record: {e}") from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def upsert_repository(self, info: RepositoryInfo) -> Repository:
        """Create the repository row or replace every field of the existing one."""
        with self._session() as db:
            repo = db.merge(Repository(
                id=info.id,
                owner=info.owner,
                name=info.name,
                language=info.language,
                description=info.description,
                default_branch=info.default_branch,
                pushed_at=info.pushed_at,
                created_at=info.created_at,
                updated_at=info.updated_at,
                is_fork=info.is_fork,
                priority=info.priority,
            ))
        return repo

    def get_repository(self, repo_id: str) -> Optional[Repository]:
        with self._session() as db:
            return db.get(Repository, repo_id)

    def list_repositories(self) -> List[Repository]:
        """All repositories, highest priority first, then most recently pushed."""
        with self._session() as db:
            return db.query(Repository).order_by(
                Repository.priority.desc(), Repository.pushed_at.desc()
            ).all()

    def list_repositories_updated_since(self, since: datetime) -> List[Repository]:
        """Repositories pushed strictly after `since`, in listing order."""
        with self._session() as db:
            return db.query(Repository).filter(
                Repository.pushed_at > since
            ).order_by(
                Repository.priority.desc(), Repository.pushed_at.desc()
            ).all()

    # ------------------------------------------------------------------
    # Branches, pull requests and commits (replace-wholesale)
    # ------------------------------------------------------------------

    def replace_branches(self, repo_id: str, branches: Iterable[BranchInfo]) -> List[Branch]:
        """
        Replace the full branch set of a repository.

        Commits of the old branches are deleted and pull requests pointing at
        them are unlinked before the old branches go.

        Args:
            repo_id: Repository id ('owner/name')
            branches: The complete new branch set

        Returns:
            The inserted branches, in input order, with fresh ids
        """
        with self._session() as db:
            old_ids = [branch_id for (branch_id,) in db.query(Branch.id).filter(Branch.repo_id == repo_id)]
            if old_ids:
                db.query(Commit).filter(
                    Commit.branch_id.in_(old_ids)
                ).delete(synchronize_session=False)
                db.query(PullRequest).filter(
                    PullRequest.branch_id.in_(old_ids)
                ).update({PullRequest.branch_id: None}, synchronize_session=False)
                db.query(Branch).filter(
                    Branch.repo_id == repo_id
                ).delete(synchronize_session=False)

            rows = [
                Branch(
                    repo_id=repo_id,
                    name=b.name,
                    sha=b.sha,
                    ahead_by=b.ahead_by,
                    behind_by=b.behind_by,
                    status=b.status,
                    last_commit_date=b.last_commit_date,
                )
                for b in branches
            ]
            db.add_all(rows)
            db.flush()
        return rows

    def list_branches(self, repo_id: str) -> List[Branch]:
        with self._session() as db:
            return db.query(Branch).filter(Branch.repo_id == repo_id).order_by(Branch.name).all()

    def update_branch_statuses(self, statuses: Dict[int, BranchStatus]) -> None:
        """Persist classifier output. Status is a cache, so this is the one field-level update."""
        if not statuses:
            return
        with self._session() as db:
            for branch in db.query(Branch).filter(Branch.id.in_(list(statuses))):
                branch.status = statuses[branch.id]

    def replace_pull_requests(self, repo_id: str, pull_requests: Iterable[PullRequestInfo]) -> List[PullRequest]:
        """Replace the full pull request set of a repository."""
        with self._session() as db:
            db.query(PullRequest).filter(
                PullRequest.repo_id == repo_id
            ).delete(synchronize_session=False)

            rows = [
                PullRequest(
                    repo_id=repo_id,
                    branch_id=pr.branch_id,
                    number=pr.number,
                    state=pr.state,
                    title=pr.title,
                    head_branch=pr.head_branch,
                    created_at=pr.created_at,
                    updated_at=pr.updated_at,
                )
                for pr in pull_requests
            ]
            db.add_all(rows)
            db.flush()
        return rows

    def list_pull_requests(self, repo_id: str) -> List[PullRequest]:
        with self._session() as db:
            return db.query(PullRequest).filter(
                PullRequest.repo_id == repo_id
            ).order_by(PullRequest.number.desc()).all()

    def replace_commits(self, branch_id: int, commits: Iterable[CommitInfo]) -> List[Commit]:
        """Replace the stored commits of one branch."""
        with self._session() as db:
            db.query(Commit).filter(Commit.branch_id == branch_id).delete(synchronize_session=False)

            rows = [
                Commit(
                    branch_id=branch_id,
                    sha=c.sha,
                    message=c.message,
                    author_name=c.author_name,
                    author_email=c.author_email,
                    authored_date=c.authored_date,
                    committer_name=c.committer_name,
                    committer_email=c.committer_email,
                    committed_date=c.committed_date,
                )
                for c in commits
            ]
            db.add_all(rows)
            db.flush()
        return rows

    def list_commits(self, branch_id: int) -> List[Commit]:
        """Commits of a branch, newest first."""
        with self._session() as db:
            return db.query(Commit).filter(
                Commit.branch_id == branch_id
            ).order_by(Commit.committed_date.desc(), Commit.id).all()

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def create_group(self, name: str, display_order: Optional[int] = None) -> Group:
        """
        Create a group.

        Args:
            name: Group name (duplicates are allowed)
            display_order: Explicit order, or None for max existing + 1 (0 when there are none)

        Returns:
            The new Group
        """
        with self._session() as db:
            if display_order is None:
                max_order = db.query(func.max(Group.display_order)).scalar()
                display_order = 0 if max_order is None else max_order + 1

            group = Group(name=name, display_order=display_order, created_at=utcnow())
            db.add(group)
            db.flush()
        return group

    def get_group(self, group_id: int) -> Optional[Group]:
        with self._session() as db:
            return db.get(Group, group_id)

    def list_groups(self) -> List[Group]:
        with self._session() as db:
            return db.query(Group).order_by(Group.display_order, Group.id).all()

    def rename_group(self, group_id: int, name: str) -> bool:
        with self._session() as db:
            group = db.get(Group, group_id)
            if group is None:
                return False
            group.name = name
            return True

    def delete_group(self, group_id: int) -> bool:
        """
        Delete a group. Memberships go with it through the foreign-key cascade;
        the repositories themselves are untouched.

        Returns:
            False if the group did not exist
        """
        with self._session() as db:
            group = db.get(Group, group_id)
            if group is None:
                return False
            db.delete(group)
            return True

    def _require_membership_targets(self, db, repo_id: str, group_id: int):
        if db.get(Repository, repo_id) is None:
            raise NotFoundError(f"Repository {repo_id} not found")
        if db.get(Group, group_id) is None:
            raise NotFoundError(f"Group {group_id} not found")

    def add_repo_to_group(self, repo_id: str, group_id: int) -> None:
        """
        Put a repository in a group. Any membership in another group is dropped
        in the same transaction; re-adding to the current group is a no-op.
        """
        with self._session() as db:
            self._require_membership_targets(db, repo_id, group_id)

            db.query(RepoGroup).filter(
                RepoGroup.repo_id == repo_id,
                RepoGroup.group_id != group_id
            ).delete(synchronize_session=False)

            if db.get(RepoGroup, (repo_id, group_id)) is None:
                db.add(RepoGroup(repo_id=repo_id, group_id=group_id, added_at=utcnow()))

    def move_repo_to_group(self, repo_id: str, group_id: int) -> None:
        """Remove the repository from all groups, then add it to `group_id`."""
        with self._session() as db:
            self._require_membership_targets(db, repo_id, group_id)

            db.query(RepoGroup).filter(RepoGroup.repo_id == repo_id).delete(synchronize_session=False)
            db.add(RepoGroup(repo_id=repo_id, group_id=group_id, added_at=utcnow()))

    def remove_repo_from_group(self, repo_id: str, group_id: int) -> None:
        with self._session() as db:
            db.query(RepoGroup).filter(
                RepoGroup.repo_id == repo_id,
                RepoGroup.group_id == group_id
            ).delete(synchronize_session=False)

    def remove_repo_from_all_groups(self, repo_id: str) -> None:
        with self._session() as db:
            db.query(RepoGroup).filter(RepoGroup.repo_id == repo_id).delete(synchronize_session=False)

    def group_ids_for_repo(self, repo_id: str) -> List[int]:
        with self._session() as db:
            return [group_id for (group_id,) in db.query(RepoGroup.group_id).filter(
                RepoGroup.repo_id == repo_id
            ).order_by(RepoGroup.group_id)]

    def repos_in_group(self, group_id: int) -> List[Repository]:
        """Members of a group, most recently pushed first."""
        with self._session() as db:
            return db.query(Repository).join(
                RepoGroup, RepoGroup.repo_id == Repository.id
            ).filter(
                RepoGroup.group_id == group_id
            ).order_by(Repository.pushed_at.desc(), Repository.id).all()

    def ungrouped_repos(self) -> List[Repository]:
        """Repositories with no group membership, most recently pushed first."""
        with self._session() as db:
            grouped = db.query(RepoGroup.repo_id)
            return db.query(Repository).filter(
                ~Repository.id.in_(grouped)
            ).order_by(Repository.pushed_at.desc(), Repository.id).all()

    # ------------------------------------------------------------------
    # Local checkouts
    # ------------------------------------------------------------------

    def add_local_repo_root(self, path: str) -> LocalRepoRoot:
        """
        Register a directory to scan for local checkouts.

        Raises:
            DuplicateLocalRootError: If the path is already configured
        """
        with self._session() as db:
            if db.query(LocalRepoRoot).filter(LocalRepoRoot.path == path).first():
                raise DuplicateLocalRootError(path)

            root = LocalRepoRoot(path=path, enabled=True, created_at=utcnow())
            db.add(root)
            db.flush()
        return root

    def list_local_repo_roots(self) -> List[LocalRepoRoot]:
        with self._session() as db:
            return db.query(LocalRepoRoot).order_by(
                LocalRepoRoot.created_at.desc(), LocalRepoRoot.id.desc()
            ).all()

    def remove_local_repo_root(self, root_id: int) -> bool:
        with self._session() as db:
            deleted = db.query(LocalRepoRoot).filter(
                LocalRepoRoot.id == root_id
            ).delete(synchronize_session=False)
            return deleted > 0

    def set_local_repo_root_enabled(self, root_id: int, enabled: bool) -> bool:
        with self._session() as db:
            root = db.get(LocalRepoRoot, root_id)
            if root is None:
                return False
            root.enabled = enabled
            return True

    def upsert_local_repo_status(self, info: LocalStatusInfo) -> LocalRepoStatus:
        """Replace the stored status for the checkout's repository id."""
        with self._session() as db:
            status = db.merge(LocalRepoStatus(
                repo_id=info.repo_id,
                local_path=info.local_path,
                current_branch=info.current_branch,
                uncommitted_files=info.uncommitted_files,
                unpushed_commits=info.unpushed_commits,
                behind_commits=info.behind_commits,
                is_dirty=info.is_dirty,
                last_checked=info.last_checked,
            ))
        return status

    def get_local_repo_status(self, repo_id: str) -> Optional[LocalRepoStatus]:
        with self._session() as db:
            return db.get(LocalRepoStatus, repo_id)

    def list_local_repo_statuses(self) -> List[LocalRepoStatus]:
        with self._session() as db:
            return db.query(LocalRepoStatus).order_by(
                LocalRepoStatus.last_checked.desc(), LocalRepoStatus.repo_id
            ).all()

    def prune_local_repo_statuses(self, keep_repo_ids: Iterable[str]) -> int:
        """
        Delete statuses for checkouts that were not rediscovered.

        Returns:
            Number of statuses deleted
        """
        keep = list(keep_repo_ids)
        with self._session() as db:
            query = db.query(LocalRepoStatus)
            if keep:
                query = query.filter(~LocalRepoStatus.repo_id.in_(keep))
            deleted = query.delete(synchronize_session=False)
        if deleted:
            logger.info(f"Pruned {deleted} stale local repository status(es)")
        return deleted

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self, key: str) -> Optional[str]:
        with self._session() as db:
            entry = db.get(ConfigEntry, key)
            return entry.value if entry else None

    def set_config(self, key: str, value: str) -> None:
        with self._session() as db:
            db.merge(ConfigEntry(key=key, value=value))
