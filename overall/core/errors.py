"""Exception hierarchy shared by the store, the gateways and the orchestrator."""


class OverallError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ValidationError(OverallError):
    """Malformed input (owner name, repository id), rejected before any remote call."""

    pass


class NotFoundError(OverallError):
    """A referenced group, root or repository does not exist."""

    pass


class GatewayError(OverallError):
    """Failure talking to the code host or the local VCS (bad exit, bad output, missing tool)."""

    pass


class StoreError(OverallError):
    """Failure in the data store."""

    pass


class ConstraintViolationError(StoreError):
    """A uniqueness or referential constraint was violated."""

    pass


class DuplicateLocalRootError(ConstraintViolationError):
    """The local repository root path is already configured."""

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' is already configured")
        self.path = path


class CorruptRecordError(StoreError):
    """A persisted value (typically a timestamp) could not be parsed."""

    pass
