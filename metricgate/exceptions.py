"""Custom exception hierarchy for metricgate.

Policy load failures are all subclasses of :class:`PolicyLoadError` and are
fatal to the load attempt that raised them.  The ops API error handler
translates any :class:`MetricGateError` into a consistent JSON response.

An access denial is *not* an exception; see
:class:`metricgate.authorizer.AuthorizationDecision`.
"""

from __future__ import annotations


class MetricGateError(Exception):
    """Base exception for all metricgate errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class PolicyLoadError(MetricGateError):
    """A policy document could not be turned into a role ACL store."""

    status_code = 422
    error_type = "policy_load_error"

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(message)


class SourceUnreadableError(PolicyLoadError):
    """The policy document could not be opened or read."""

    status_code = 503
    error_type = "source_unreadable"

    def __init__(self, source: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"unable to open policy {source}: {cause}", source=source)


class MalformedDocumentError(PolicyLoadError):
    """The policy document is not valid YAML or does not have the expected shape."""

    error_type = "malformed_document"


class InvalidPatternError(PolicyLoadError):
    """A pattern identifier failed to compile as a regular expression."""

    error_type = "invalid_pattern"

    def __init__(
        self,
        role: str,
        identifier: str,
        cause: BaseException | str,
        *,
        source: str | None = None,
    ) -> None:
        self.role = role
        self.identifier = identifier
        self.cause = cause
        super().__init__(
            f"role {role!r}: invalid pattern {identifier!r}: {cause}",
            source=source,
        )


class DuplicateEntryError(PolicyLoadError):
    """The same metric identifier was declared twice for one role."""

    error_type = "duplicate_entry"

    def __init__(self, role: str, identifier: str, *, source: str | None = None) -> None:
        self.role = role
        self.identifier = identifier
        super().__init__(f"role {role!r}: duplicate entry {identifier!r}", source=source)


class AuthenticationError(MetricGateError):
    """A provided admin key is not valid."""

    status_code = 401
    error_type = "authentication_error"


class ForbiddenError(MetricGateError):
    """An admin key is required but none was supplied."""

    status_code = 403
    error_type = "forbidden"
