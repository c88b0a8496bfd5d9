"""Exception hierarchy for specgraph.

All exceptions inherit from :class:`SpecgraphError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgraph.exit_codes`.
The top-level error handler in :func:`specgraph.app.main` catches
``SpecgraphError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Only fatal conditions are modelled here. Resolution misses, duplicate
schema names and similar degraded results are logged as warnings and never
raised.

Subclass hierarchy::

    SpecgraphError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- SpecLoadError        (exit 7)
    +-- SpecValidationError  (exit 8)
    +-- ConfigError          (exit 1)
"""

from specgraph.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_LOAD_ERROR,
    EXIT_SPEC_VALIDATION_ERROR,
)


class SpecgraphError(Exception):
    """Base exception for all specgraph errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgraphError):
    """Raised for invalid CLI arguments or missing required inputs."""

    exit_code = EXIT_INVALID_USAGE


class SpecLoadError(SpecgraphError):
    """Raised when a document cannot be found, fetched, or parsed."""

    exit_code = EXIT_SPEC_LOAD_ERROR


class SpecValidationError(SpecgraphError):
    """Raised when a loaded document violates a structural invariant.

    Examples are duplicate operationIds, server URLs that reference
    undefined template variables and server variable values outside their
    ``enum``.
    """

    exit_code = EXIT_SPEC_VALIDATION_ERROR


class ConfigError(SpecgraphError):
    """Raised for configuration problems (unreadable or invalid config files)."""

    exit_code = EXIT_GENERIC_FAILURE
