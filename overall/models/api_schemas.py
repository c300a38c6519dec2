"""Pydantic models for JSON request and response bodies of the HTTP API."""
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ============================================================================
# Common
# ============================================================================

class ApiResponse(CamelModel):
    """Envelope shared by every endpoint."""

    success: bool
    """Whether the operation succeeded"""

    message: str
    """Human-readable outcome"""


# ============================================================================
# Groups
# ============================================================================

class GroupInfo(CamelModel):
    id: int
    name: str
    display_order: int
    repo_ids: List[str]
    """Member repositories, most recently pushed first"""


class ListGroupsResponse(ApiResponse):
    groups: List[GroupInfo]


class AddReposRequest(CamelModel):
    """Add repositories to an existing group, or to a new one named group_name."""

    repo_ids: List[str]
    """Repository ids ('owner/name') to add"""

    group_name: Optional[str] = None
    """Name of the group to create when target_group_id is absent"""

    target_group_id: Optional[int] = None
    """Existing group to add to"""


class AddReposResponse(ApiResponse):
    group_id: int


class RenameGroupRequest(CamelModel):
    name: str


class MoveRepoRequest(CamelModel):
    repo_id: str

    target_group_id: Optional[int] = None
    """Destination group; null ungroups the repository"""


# ============================================================================
# Sync
# ============================================================================

class SyncRequest(CamelModel):
    owners: Optional[List[str]] = None
    """Owners to sync; defaults to the settings file"""

    limit: Optional[int] = Field(default=None, ge=1)
    """Repositories per owner; defaults to the settings file"""

    incremental: bool = False


class SyncRepoRequest(CamelModel):
    repo_id: str


class SyncResponse(ApiResponse):
    report: Dict[str, Any]
    """Per-step successes and failures"""


# ============================================================================
# Pull requests
# ============================================================================

class CreatePrRequest(CamelModel):
    repo_id: str
    branch_name: str
    title: Optional[str] = None
    body: Optional[str] = None


class CreatePrResponse(ApiResponse):
    url: Optional[str] = None


class CreateAllPrsRequest(CamelModel):
    repo_id: str


class CreateAllPrsResponse(ApiResponse):
    urls: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# ============================================================================
# Local repositories
# ============================================================================

class LocalRootInfo(CamelModel):
    id: int
    path: str
    enabled: bool
    created_at: str
    """ISO 8601 timestamp"""


class ListLocalRootsResponse(ApiResponse):
    roots: List[LocalRootInfo]


class AddLocalRootRequest(CamelModel):
    path: str
    """Directory to scan; '~' is expanded"""


class AddLocalRootResponse(ApiResponse):
    root: Optional[LocalRootInfo] = None


class ToggleLocalRootRequest(CamelModel):
    enabled: bool


class ScanLocalRequest(CamelModel):
    prune: bool = False
    """Delete statuses of checkouts that were not found"""

    fetch: bool = False
    """Run git fetch in each checkout first"""


class LocalStatusEntry(CamelModel):
    repo_id: str
    local_path: str
    current_branch: Optional[str] = None
    uncommitted_files: int
    unpushed_commits: int
    behind_commits: int
    is_dirty: bool
    last_checked: str


class ListLocalStatusResponse(ApiResponse):
    statuses: List[LocalStatusEntry]
