"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgraph.exceptions.SpecgraphError` subclass.
Build scripts can inspect the exit code to tell a broken spec from a
broken invocation without parsing stderr.

Example::

    $ specgraph inspect info broken.yaml
    $ echo $?
    8   # EXIT_SPEC_VALIDATION_ERROR -- duplicate operationId
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_LOAD_ERROR = 7
"""A document could not be read, fetched, or parsed."""

EXIT_SPEC_VALIDATION_ERROR = 8
"""A document was loaded but failed structural validation."""
