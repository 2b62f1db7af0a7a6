"""Error taxonomy shared by the services and the HTTP layer."""


class ResultCheckerError(Exception):
    """Base class for all application errors."""


class InvalidDataError(ResultCheckerError):
    """A write payload is missing a required field (HTTP 400)."""


class NotFoundError(ResultCheckerError):
    """No matching record (HTTP 404)."""


class ServiceError(ResultCheckerError):
    """A store or cache driver call failed (HTTP 500)."""


class UnhealthyError(ResultCheckerError):
    """A connectivity probe failed (HTTP 503)."""


class StartupError(ResultCheckerError):
    """The process could not connect to its dependencies and must exit."""
