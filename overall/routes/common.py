"""Request parsing, error mapping and response helpers shared by the API blueprints."""
import logging
from functools import wraps
from typing import Type, TypeVar

from flask import jsonify, request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from overall.app import regenerate_snapshot
from overall.core.errors import (
    OverallError, ValidationError, NotFoundError, DuplicateLocalRootError, GatewayError, StoreError
)
from overall.models.api_schemas import ApiResponse

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


def json_response(model: ApiResponse, status: int = 200):
    return jsonify(model.to_json()), status


def error_response(message: str, status: int):
    return json_response(ApiResponse(success=False, message=message), status)


def parse_request(model_cls: Type[M]) -> M:
    """
    Validate the JSON body against a request model.

    A missing body is treated as {} so models with all-optional fields work
    without one.

    Raises:
        ValidationError: If the body does not match the model
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid request: {e}")


def status_for(error: OverallError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, DuplicateLocalRootError):
        return 409
    if isinstance(error, GatewayError):
        return 502
    return 500


def api_errors(f):
    """Turn OverallError subclasses raised by a view into JSON error responses."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except OverallError as e:
            status = status_for(e)
            if status >= 500:
                logger.error(f"{request.method} {request.path} failed", exc_info=True)
            return error_response(str(e), status)

    return decorated


def respond_after_regrouping(model: ApiResponse):
    """
    Regenerate the snapshot after a grouping change, then respond.

    The change is already committed at this point, so a failed regeneration
    is reported without claiming the change itself failed.
    """
    try:
        regenerate_snapshot()
    except (OSError, StoreError) as e:
        logger.error("Snapshot regeneration failed after grouping change", exc_info=True)
        return error_response(f"{model.message}, but regenerating the snapshot failed: {e}", 500)
    return json_response(model)
