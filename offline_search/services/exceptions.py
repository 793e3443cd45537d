"""Domain-specific exceptions."""


class SearchError(Exception):
    pass


class InvalidQuery(SearchError):
    pass


class CacheReadFailure(SearchError):
    pass


class CacheWriteFailure(SearchError):
    pass


class NetworkFailure(SearchError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SearchCancelled(SearchError):
    """Raised inside a superseded search task to unwind it quietly."""
