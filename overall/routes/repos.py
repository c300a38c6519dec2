"""Repository, snapshot and sync API routes"""
import logging
from flask import Blueprint, jsonify, request

from overall.app import get_store, get_settings, get_orchestrator, regenerate_snapshot, snapshot_path
from overall.core.errors import StoreError, ValidationError
from overall.core.priority import sort_repositories
from overall.core.snapshot import build_snapshot
from overall.core.sync import SyncReport
from overall.models.api_schemas import ApiResponse, SyncRequest, SyncRepoRequest, SyncResponse
from overall.routes.common import api_errors, json_response, parse_request

logger = logging.getLogger(__name__)
repos_bp = Blueprint('repos', __name__)


def _finish_sync(report: SyncReport):
    """Export the refreshed state and build the response"""
    try:
        regenerate_snapshot()
    except (OSError, StoreError) as e:
        logger.error("Snapshot regeneration failed after sync", exc_info=True)
        report.fail(f"Failed to regenerate snapshot: {e}")

    response = SyncResponse(
        success=not report.has_failures,
        message=report.summary(),
        report=report.to_dict(),
    )
    return json_response(response)


@repos_bp.route('/api/repos/export', methods=['POST'])
@api_errors
def export_snapshot():
    """Regenerate repos.json from the current store state"""
    regenerate_snapshot()
    return json_response(ApiResponse(success=True, message=f"Exported snapshot to {snapshot_path()}"))


@repos_bp.route('/api/repos/snapshot', methods=['GET'])
@api_errors
def get_snapshot():
    """
    Return the snapshot without writing it.

    Query parameters:
        sort: Secondary sort column within a priority class (name, language, lastPush)
        order: 'asc' (default) or 'desc'
    """
    snapshot = build_snapshot(get_store())

    column = request.args.get('sort')
    if column:
        ascending = request.args.get('order', 'asc') != 'desc'
        for group in snapshot['groups']:
            group['repos'] = sort_repositories(group['repos'], column, ascending)
        snapshot['ungrouped'] = sort_repositories(snapshot['ungrouped'], column, ascending)

    return jsonify(snapshot), 200


@repos_bp.route('/api/repos/sync', methods=['POST'])
@api_errors
def sync_repository():
    """Refresh one repository's branches and pull requests"""
    sync_request = parse_request(SyncRepoRequest)
    report = get_orchestrator().sync_repository(sync_request.repo_id)
    return _finish_sync(report)


@repos_bp.route('/api/sync', methods=['POST'])
@api_errors
def sync_all():
    """
    Sync owners from the request, or from the settings file when none are given.

    Expected JSON body: SyncRequest schema (every field optional)

    Returns: SyncResponse
    """
    sync_request = parse_request(SyncRequest)
    settings = get_settings()

    owners = sync_request.owners if sync_request.owners is not None else settings.github.owners
    if not owners:
        raise ValidationError("No owners given and none configured in the settings file")

    report = get_orchestrator().sync_owners(
        owners,
        limit=sync_request.limit or settings.github.repo_limit,
        incremental=sync_request.incremental,
    )
    return _finish_sync(report)
