"""
Sync orchestration - pulls state from the code host and local checkouts into the store.

Repositories are processed one at a time. The gateway is a rate-limited
remote service, and the store lock is only ever held inside a single store
call, never across a gateway call.
"""
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, List, Optional, Set

from overall.core.classifier import classify_branch_status
from overall.core.errors import GatewayError, NotFoundError, OverallError, StoreError, ValidationError
from overall.core.records import RepositoryInfo
from overall.core.store import Store
from overall.core.validation import validate_owner, validate_repo_id
from overall.gateway.base import VcsGateway, LocalScanner
from overall.models import Branch
from overall.models.base import utcnow

logger = logging.getLogger(__name__)

LAST_SYNC_KEY = 'last_sync_at'
# Repositories whose last refresh failed part-way; refreshed by the next incremental sync
PENDING_REFRESH_KEY = 'pending_refresh'
DEFAULT_REPO_LIMIT = 50
COMMIT_LIMIT = 50


@dataclass
class SyncReport:
    """Trail of per-step outcomes. Partial success is a normal result."""
    successes: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    repos_synced: int = 0
    repos_partial: int = 0
    repos_scanned: int = 0

    def ok(self, message: str):
        self.successes.append(message)
        logger.info(message)

    def fail(self, message: str):
        self.failures.append(message)
        logger.warning(message)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def summary(self) -> str:
        lines = [
            f"Synced {self.repos_synced} repositories ({self.repos_partial} partially), scanned {self.repos_scanned} local checkouts "
            f"({len(self.successes)} steps succeeded, {len(self.failures)} failed)"
        ]
        lines.extend(f"  FAILED: {failure}" for failure in self.failures)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'reposSynced': self.repos_synced,
            'reposPartial': self.repos_partial,
            'reposScanned': self.repos_scanned,
            'successes': list(self.successes),
            'failures': list(self.failures),
        }


class SyncOrchestrator:
    """
    Drives full and partial refreshes.

    Args:
        store: Data store
        gateway: Code-host gateway
        scanner: Local checkout scanner, required only for scan_local
        repo_limit: Default number of repositories listed per owner
        commit_limit: Most recent commits kept per branch
    """

    def __init__(self, store: Store, gateway: VcsGateway, scanner: Optional[LocalScanner] = None,
                 repo_limit: int = DEFAULT_REPO_LIMIT, commit_limit: int = COMMIT_LIMIT):
        self.store = store
        self.gateway = gateway
        self.scanner = scanner
        self.repo_limit = repo_limit
        self.commit_limit = commit_limit

    # ------------------------------------------------------------------
    # Remote sync
    # ------------------------------------------------------------------

    def sync_owners(self, owners: Iterable[str], limit: Optional[int] = None,
                    incremental: bool = False) -> SyncReport:
        """
        Sync every repository of the given owners.

        Args:
            owners: Owner names; invalid ones are reported and skipped
            limit: Repositories per owner (defaults to repo_limit)
            incremental: Only refresh branches and pull requests of repositories
                pushed since the previous sync, or whose previous refresh failed;
                the rest are only upserted

        Returns:
            SyncReport
        """
        report = SyncReport()
        limit = limit or self.repo_limit

        valid_owners = []
        for owner in owners:
            try:
                valid_owners.append(validate_owner(owner))
            except ValidationError as e:
                report.fail(f"{owner}: {e}")

        since = self._last_sync_at() if incremental else None
        pending = self._pending_refresh()
        if incremental:
            logger.info(f"Incremental sync, previous sync at {since.isoformat() if since else 'never'}")
        started_at = utcnow()

        for owner in valid_owners:
            try:
                repos = self.gateway.list_repos(owner, limit)
            except GatewayError as e:
                report.fail(f"{owner}: failed to list repositories: {e}")
                continue
            report.ok(f"{owner}: found {len(repos)} repositories")

            for info in repos:
                if (since is not None and info.pushed_at <= since and info.id not in pending
                        and self._is_known(info.id, report)):
                    self._upsert(info, report)
                    continue
                if self._sync_one(info, report):
                    pending.discard(info.id)
                else:
                    pending.add(info.id)

        try:
            self.store.set_config(LAST_SYNC_KEY, started_at.isoformat())
            self.store.set_config(PENDING_REFRESH_KEY, json.dumps(sorted(pending)))
        except StoreError as e:
            report.fail(f"Failed to record sync time: {e}")

        return report

    def sync_repository(self, repo_id: str) -> SyncReport:
        """
        Refresh branches, commits and pull requests of one known repository.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If the repository has never been synced
        """
        validate_repo_id(repo_id)
        repo = self.store.get_repository(repo_id)
        if repo is None:
            raise NotFoundError(f"Repository {repo_id} not found")

        report = SyncReport()
        pending = self._pending_refresh()
        if self._refresh(repo_id, repo.default_branch, report):
            pending.discard(repo_id)
        else:
            pending.add(repo_id)
        self.store.set_config(PENDING_REFRESH_KEY, json.dumps(sorted(pending)))
        return report

    def _sync_one(self, info: RepositoryInfo, report: SyncReport) -> bool:
        if not self._upsert(info, report):
            return False
        return self._refresh(info.id, info.default_branch, report)

    def _upsert(self, info: RepositoryInfo, report: SyncReport) -> bool:
        try:
            validate_repo_id(info.id)
            self.store.upsert_repository(info)
        except (ValidationError, StoreError) as e:
            report.fail(f"{info.id}: failed to save repository: {e}")
            return False
        return True

    def _is_known(self, repo_id: str, report: SyncReport) -> bool:
        try:
            return self.store.get_repository(repo_id) is not None
        except StoreError as e:
            report.fail(f"{repo_id}: failed to read repository: {e}")
            return False

    def _refresh(self, repo_id: str, default_branch: str, report: SyncReport) -> bool:
        """
        Steps after the upsert; a store failure abandons only this repository.

        Returns:
            True when every step succeeded
        """
        failures_before = len(report.failures)
        try:
            branches = self._sync_branches(repo_id, report)
            self._sync_pull_requests(repo_id, branches, report)
            self._classify(repo_id, default_branch, report)
        except StoreError as e:
            logger.error(f"Store failure while syncing {repo_id}", exc_info=True)
            report.fail(f"{repo_id}: store error: {e}")
            return False

        if len(report.failures) > failures_before:
            report.repos_partial += 1
            return False
        report.repos_synced += 1
        return True

    def _sync_branches(self, repo_id: str, report: SyncReport) -> Optional[List[Branch]]:
        try:
            infos = self.gateway.fetch_branches(repo_id)
        except GatewayError as e:
            report.fail(f"{repo_id}: failed to fetch branches: {e}")
            return None

        branches = self.store.replace_branches(repo_id, infos)
        report.ok(f"{repo_id}: stored {len(branches)} branches")

        # Commit history is only shown for branches with unmerged work
        for branch in branches:
            if branch.ahead_by <= 0:
                continue
            try:
                commits = self.gateway.fetch_commits(repo_id, branch.name, branch.id, self.commit_limit)
            except GatewayError as e:
                report.fail(f"{repo_id}: failed to fetch commits of {branch.name}: {e}")
                continue
            self.store.replace_commits(branch.id, commits[:self.commit_limit])

        return branches

    def _sync_pull_requests(self, repo_id: str, branches: Optional[List[Branch]], report: SyncReport):
        try:
            pull_requests = self.gateway.fetch_pull_requests(repo_id)
        except GatewayError as e:
            report.fail(f"{repo_id}: failed to fetch pull requests: {e}")
            return

        if branches is None:
            branches = self.store.list_branches(repo_id)
        branch_ids = {branch.name: branch.id for branch in branches}

        linked = [replace(pr, branch_id=branch_ids.get(pr.head_branch)) for pr in pull_requests]
        self.store.replace_pull_requests(repo_id, linked)
        report.ok(f"{repo_id}: stored {len(linked)} pull requests")

    def _classify(self, repo_id: str, default_branch: str, report: SyncReport):
        branches = self.store.list_branches(repo_id)
        pull_requests = self.store.list_pull_requests(repo_id)

        statuses = {
            branch.id: classify_branch_status(branch, pull_requests, default_branch)
            for branch in branches
        }
        self.store.update_branch_statuses(statuses)
        logger.debug(f"{repo_id}: classified {len(statuses)} branches")

    def _last_sync_at(self) -> Optional[datetime]:
        value = self.store.get_config(LAST_SYNC_KEY)
        if not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring unparseable {LAST_SYNC_KEY} value: {value!r}")
            return None

    def _pending_refresh(self) -> Set[str]:
        value = self.store.get_config(PENDING_REFRESH_KEY)
        if not value:
            return set()
        try:
            return set(json.loads(value))
        except (ValueError, TypeError):
            logger.warning(f"Ignoring unparseable {PENDING_REFRESH_KEY} value: {value!r}")
            return set()

    # ------------------------------------------------------------------
    # Local scan
    # ------------------------------------------------------------------

    def scan_local(self, prune: bool = False, fetch: bool = False) -> SyncReport:
        """
        Scan every enabled local root and store one status per checkout.

        Args:
            prune: Delete stored statuses of checkouts not found in this scan.
                Skipped when any root or checkout failed, so a transient error
                cannot wipe statuses.
            fetch: Run `git fetch` in each checkout first

        Returns:
            SyncReport
        """
        if self.scanner is None:
            raise OverallError("No local scanner configured")

        report = SyncReport()
        discovered = []
        complete = True

        for root in self.store.list_local_repo_roots():
            if not root.enabled:
                continue

            try:
                paths = self.scanner.scan_for_repos(root.path)
            except GatewayError as e:
                report.fail(f"{root.path}: failed to scan: {e}")
                complete = False
                continue
            report.ok(f"{root.path}: found {len(paths)} checkouts")

            for path in paths:
                if fetch:
                    try:
                        self.scanner.fetch_remote(path)
                    except GatewayError as e:
                        report.fail(f"{path}: fetch failed: {e}")

                try:
                    status = self.scanner.get_repo_status(path)
                    self.store.upsert_local_repo_status(status)
                except (GatewayError, StoreError) as e:
                    report.fail(f"{path}: failed to read status: {e}")
                    complete = False
                    continue

                discovered.append(status.repo_id)
                report.repos_scanned += 1

        if prune:
            if complete:
                pruned = self.store.prune_local_repo_statuses(discovered)
                report.ok(f"Pruned {pruned} local statuses no longer found")
            else:
                report.fail("Skipped pruning because the scan was incomplete")

        return report
