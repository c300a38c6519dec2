"""Group API routes"""
import logging
from flask import Blueprint

from overall.app import get_group_manager
from overall.models.api_schemas import (
    ApiResponse, GroupInfo, ListGroupsResponse, AddReposRequest, AddReposResponse,
    RenameGroupRequest, MoveRepoRequest
)
from overall.routes.common import api_errors, json_response, parse_request, respond_after_regrouping

logger = logging.getLogger(__name__)
groups_bp = Blueprint('groups', __name__)


@groups_bp.route('/api/groups', methods=['GET'])
@api_errors
def list_groups():
    """List groups in display order with their member repository ids"""
    manager = get_group_manager()

    groups = [
        GroupInfo(
            id=group.id,
            name=group.name,
            display_order=group.display_order,
            repo_ids=[repo.id for repo in manager.members(group.id)],
        )
        for group in manager.list_groups()
    ]

    response = ListGroupsResponse(success=True, message=f"{len(groups)} groups", groups=groups)
    return json_response(response)


@groups_bp.route('/api/groups/add-repos', methods=['POST'])
@api_errors
def add_repos_to_group():
    """
    Add repositories to a group, creating it when no target group is given.

    Expected JSON body: AddReposRequest schema

    Returns: AddReposResponse
    """
    add_request = parse_request(AddReposRequest)

    group = get_group_manager().add_repos(
        add_request.repo_ids,
        group_name=add_request.group_name,
        target_group_id=add_request.target_group_id,
    )

    response = AddReposResponse(
        success=True,
        message=f"Added {len(add_request.repo_ids)} repositories to group '{group.name}'",
        group_id=group.id,
    )
    return respond_after_regrouping(response)


@groups_bp.route('/api/groups/delete/<int:group_id>', methods=['POST'])
@api_errors
def delete_group(group_id):
    """Delete a group; its repositories become ungrouped"""
    get_group_manager().delete_group(group_id)
    return respond_after_regrouping(ApiResponse(success=True, message=f"Deleted group {group_id}"))


@groups_bp.route('/api/groups/<int:group_id>/rename', methods=['POST'])
@api_errors
def rename_group(group_id):
    rename_request = parse_request(RenameGroupRequest)
    get_group_manager().rename_group(group_id, rename_request.name)
    return respond_after_regrouping(
        ApiResponse(success=True, message=f"Renamed group {group_id} to '{rename_request.name.strip()}'")
    )


@groups_bp.route('/api/repos/move', methods=['POST'])
@api_errors
def move_repo():
    """
    Move a repository to another group.

    Expected JSON body: MoveRepoRequest schema; a null targetGroupId ungroups it.
    """
    move_request = parse_request(MoveRepoRequest)
    get_group_manager().move_repo(move_request.repo_id, move_request.target_group_id)

    if move_request.target_group_id is None:
        message = f"Moved {move_request.repo_id} to ungrouped"
    else:
        message = f"Moved {move_request.repo_id} to group {move_request.target_group_id}"
    return respond_after_regrouping(ApiResponse(success=True, message=message))
