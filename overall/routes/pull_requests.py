"""Pull request API routes"""
import logging
from flask import Blueprint

from overall.app import get_store, get_gateway
from overall.core.errors import GatewayError, NotFoundError
from overall.core.validation import validate_repo_id
from overall.models.api_schemas import CreatePrRequest, CreatePrResponse, CreateAllPrsRequest, CreateAllPrsResponse
from overall.routes.common import api_errors, json_response, parse_request

logger = logging.getLogger(__name__)
pull_requests_bp = Blueprint('pull_requests', __name__)


@pull_requests_bp.route('/api/pr/create', methods=['POST'])
@api_errors
def create_pull_request():
    """
    Open a pull request for one branch.

    Expected JSON body: CreatePrRequest schema

    Returns: CreatePrResponse with the pull request URL (an existing one counts)
    """
    pr_request = parse_request(CreatePrRequest)
    validate_repo_id(pr_request.repo_id)

    url = get_gateway().create_pull_request(
        pr_request.repo_id,
        pr_request.branch_name,
        title=pr_request.title,
        body=pr_request.body,
    )

    response = CreatePrResponse(success=True, message=f"Pull request ready: {url}", url=url)
    return json_response(response)


@pull_requests_bp.route('/api/pr/create-all', methods=['POST'])
@api_errors
def create_all_pull_requests():
    """
    Open pull requests for every branch of a repository with unmerged work.

    Branch failures are collected; the response lists both URLs and errors.
    """
    pr_request = parse_request(CreateAllPrsRequest)
    validate_repo_id(pr_request.repo_id)

    store = get_store()
    repo = store.get_repository(pr_request.repo_id)
    if repo is None:
        raise NotFoundError(f"Repository {pr_request.repo_id} not found")

    branches = [
        branch for branch in store.list_branches(repo.id)
        if branch.ahead_by > 0 and branch.name != repo.default_branch
    ]
    if not branches:
        return json_response(CreateAllPrsResponse(success=True, message="No branches with unmerged work found"))

    gateway = get_gateway()
    urls = []
    errors = []
    for branch in branches:
        try:
            urls.append(gateway.create_pull_request(repo.id, branch.name))
        except GatewayError as e:
            logger.warning(f"Failed to create pull request for {repo.id}@{branch.name}: {e}")
            errors.append(f"{branch.name}: {e}")

    response = CreateAllPrsResponse(
        success=not errors,
        message=f"Created {len(urls)} of {len(branches)} PRs successfully",
        urls=urls,
        errors=errors,
    )
    return json_response(response)
