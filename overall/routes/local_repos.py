"""Local repository root and status API routes"""
import logging
import os
from flask import Blueprint

from overall.app import get_store, get_orchestrator
from overall.core.errors import NotFoundError, ValidationError
from overall.models import LocalRepoRoot
from overall.models.api_schemas import (
    ApiResponse, LocalRootInfo, ListLocalRootsResponse, AddLocalRootRequest, AddLocalRootResponse,
    ToggleLocalRootRequest, ScanLocalRequest, SyncResponse, LocalStatusEntry, ListLocalStatusResponse
)
from overall.routes.common import api_errors, json_response, parse_request

logger = logging.getLogger(__name__)
local_repos_bp = Blueprint('local_repos', __name__)


def _root_info(root: LocalRepoRoot) -> LocalRootInfo:
    return LocalRootInfo(
        id=root.id,
        path=root.path,
        enabled=root.enabled,
        created_at=root.created_at.isoformat(),
    )


@local_repos_bp.route('/api/local-repos/roots', methods=['GET'])
@api_errors
def list_roots():
    roots = [_root_info(root) for root in get_store().list_local_repo_roots()]
    return json_response(ListLocalRootsResponse(success=True, message=f"{len(roots)} roots", roots=roots))


@local_repos_bp.route('/api/local-repos/roots', methods=['POST'])
@api_errors
def add_root():
    """
    Register a directory to scan for checkouts.

    Expected JSON body: AddLocalRootRequest schema

    Returns: AddLocalRootResponse, or 409 if the path is already configured
    """
    root_request = parse_request(AddLocalRootRequest)
    if not root_request.path.strip():
        raise ValidationError("Path cannot be empty")

    path = os.path.abspath(os.path.expanduser(root_request.path.strip()))
    root = get_store().add_local_repo_root(path)
    logger.info(f"Added local repository root {path}")

    response = AddLocalRootResponse(success=True, message=f"Added {path}", root=_root_info(root))
    return json_response(response, 201)


@local_repos_bp.route('/api/local-repos/roots/<int:root_id>', methods=['DELETE'])
@api_errors
def remove_root(root_id):
    if not get_store().remove_local_repo_root(root_id):
        raise NotFoundError(f"Local repository root {root_id} not found")
    return json_response(ApiResponse(success=True, message=f"Removed root {root_id}"))


@local_repos_bp.route('/api/local-repos/roots/<int:root_id>/toggle', methods=['POST'])
@api_errors
def toggle_root(root_id):
    toggle_request = parse_request(ToggleLocalRootRequest)
    if not get_store().set_local_repo_root_enabled(root_id, toggle_request.enabled):
        raise NotFoundError(f"Local repository root {root_id} not found")

    state = 'Enabled' if toggle_request.enabled else 'Disabled'
    return json_response(ApiResponse(success=True, message=f"{state} root {root_id}"))


@local_repos_bp.route('/api/local-repos/scan', methods=['POST'])
@api_errors
def scan():
    """Scan every enabled root and refresh local statuses"""
    scan_request = parse_request(ScanLocalRequest)
    report = get_orchestrator().scan_local(prune=scan_request.prune, fetch=scan_request.fetch)

    response = SyncResponse(
        success=not report.has_failures,
        message=report.summary(),
        report=report.to_dict(),
    )
    return json_response(response)


@local_repos_bp.route('/api/local-repos/status', methods=['GET'])
@api_errors
def list_statuses():
    statuses = [
        LocalStatusEntry(
            repo_id=status.repo_id,
            local_path=status.local_path,
            current_branch=status.current_branch,
            uncommitted_files=status.uncommitted_files,
            unpushed_commits=status.unpushed_commits,
            behind_commits=status.behind_commits,
            is_dirty=status.is_dirty,
            last_checked=status.last_checked.isoformat(),
        )
        for status in get_store().list_local_repo_statuses()
    ]
    response = ListLocalStatusResponse(success=True, message=f"{len(statuses)} local repositories",
                                       statuses=statuses)
    return json_response(response)
