"""Input validation for owner names and repository ids."""
import re

from overall.core.errors import ValidationError

# GitHub logins: letters, digits and hyphens, at most 39 characters
MAX_OWNER_LENGTH = 39
_REPO_NAME_RE = re.compile(r'^[A-Za-z0-9._-]+$')


def validate_owner(owner: str) -> str:
    """
    Validate a code-host owner (user or organization) name.

    Args:
        owner: Owner name

    Returns:
        The owner name, unchanged

    Raises:
        ValidationError: If the name is empty, too long or has invalid characters
    """
    if not owner:
        raise ValidationError("Owner cannot be empty")

    if not all(c.isalnum() or c == '-' for c in owner):
        raise ValidationError(f"Invalid owner name '{owner}': must be alphanumeric or hyphens")

    if len(owner) > MAX_OWNER_LENGTH:
        raise ValidationError(
            f"Owner name too long: {len(owner)} characters (max {MAX_OWNER_LENGTH})"
        )

    return owner


def validate_repo_id(repo_id: str) -> tuple[str, str]:
    """
    Validate a repository id of the form 'owner/name'.

    Returns:
        Tuple of (owner, name)

    Raises:
        ValidationError: If the id is not 'owner/name' or either part is invalid
    """
    parts = (repo_id or '').split('/')
    if len(parts) != 2 or not all(parts):
        raise ValidationError(f"Invalid repository ID: {repo_id}. Expected owner/name format")

    owner, name = parts
    validate_owner(owner)
    if not _REPO_NAME_RE.match(name) or name in ('.', '..'):
        raise ValidationError(f"Invalid repository name '{name}' in {repo_id}")

    return owner, name
