"""Exception hierarchy for servicelayer.

All exceptions inherit from :class:`ServiceLayerError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`servicelayer.exit_codes`. The CLI entry point in
:func:`servicelayer.app.main` catches ``ServiceLayerError`` and exits with
the appropriate code.

API error statuses are *not* exceptions: a 4xx/5xx answer is returned as an
:class:`~servicelayer.models.ErrorResponse` value. Network faults raised by
the transport are re-raised unchanged (``httpx`` exception types).

Subclass hierarchy::

    ServiceLayerError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- InvalidOptionError  (exit 3)
    +-- ConfigError         (exit 1)
"""

from servicelayer.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_OPTION,
    EXIT_INVALID_USAGE,
)


class ServiceLayerError(Exception):
    """Base exception for all servicelayer errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ServiceLayerError):
    """Raised for invalid CLI arguments (malformed header, unparsable value)."""

    exit_code = EXIT_INVALID_USAGE


class InvalidOptionError(ServiceLayerError, ValueError):
    """Raised when a request declares a data placement outside the recognised set.

    Raised synchronously by the dispatcher before the transport is invoked.
    """

    exit_code = EXIT_INVALID_OPTION


class ConfigError(ServiceLayerError):
    """Raised for configuration problems (invalid JSON, bad values, missing base URL)."""

    exit_code = EXIT_GENERIC_FAILURE
