from __future__ import annotations


class ApiSemverError(Exception):
    """Base exception for api-semver."""


class SnapshotIOError(ApiSemverError):
    """Raised when API snapshot files cannot be loaded or saved."""


class IntrospectionError(ApiSemverError):
    """Raised when an API snapshot cannot be turned into a usable model."""

    def __init__(self, source: str, cause: Exception) -> None:
        super().__init__(f"unable to load API of {source}: {cause}")
        self.source = source
        self.cause = cause


class VersionDiscoveryError(ApiSemverError):
    """Base error for listing the versions of a repository."""

    operation = "discover versions"

    def __init__(self, detail: str, cause: Exception | None = None) -> None:
        message = f"{self.operation}: {detail}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.detail = detail
        self.cause = cause


class RepositoryOpenError(VersionDiscoveryError):
    """Path could not be opened as a git repository."""

    operation = "open repository"


class MissingHeadError(VersionDiscoveryError):
    """Repository has no HEAD reference to compare against."""

    operation = "resolve HEAD"


class TagListError(VersionDiscoveryError):
    """Tags of the repository could not be listed."""

    operation = "list tags"


class TagResolutionError(VersionDiscoveryError):
    """A tag could not be resolved for a reason other than not being a commit."""

    operation = "resolve tag"
