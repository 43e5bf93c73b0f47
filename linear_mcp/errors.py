"""Exceptions raised by the tracker client and the search filter builder."""


class TrackerError(RuntimeError):
    """Base class for failures talking to the issue tracker."""


class TrackerAPIError(TrackerError):
    """The tracker answered, but with a GraphQL error or an unsuccessful mutation."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(TrackerError):
    def __init__(self, entity: str, key: str, message: str | None = None) -> None:
        self.entity = entity
        self.key = key
        super().__init__(message or f"{entity} {key} not found")


class NoActiveCycleError(TrackerError):
    """No cycle is currently active, so a current-cycle filter cannot be built."""

    def __init__(self) -> None:
        super().__init__("No active cycles found. Cannot filter by current cycle.")
