"""
Exception types for SEO Content Studio.

All errors are local to a single request. Nothing in the core retries
automatically except version assignment on revision conflicts.
"""


class StudioError(Exception):
    """Base class for all SEO Content Studio errors."""
    pass


class NotFound(StudioError):
    """Raised when content, a revision or an analysis is absent or not owned by the caller."""
    pass


class ValidationError(StudioError):
    """Raised when input fails field or state validation."""
    pass


class InvalidComparison(StudioError):
    """Raised when two revisions from different content items are compared."""
    pass


class ProviderUnavailable(StudioError):
    """Raised when no AI provider is configured for the requested capability."""
    pass


class ProviderError(StudioError):
    """Raised when a configured AI provider fails or returns a malformed response."""
    pass


class VersionConflict(StudioError):
    """Raised by the store when a revision version number is already taken."""
    pass


class KeywordLoadError(StudioError):
    """Raised when keyword loading fails."""
    pass
