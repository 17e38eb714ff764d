"""Numeric process exit codes used by the ``servicelayer`` CLI.

Each constant maps to an outcome category and is referenced either by the
corresponding :class:`~servicelayer.exceptions.ServiceLayerError` subclass or
by the ``call`` command when it classifies a dispatched call.
Shell wrappers can inspect the exit code to tell an API-level error apart
from a network failure without parsing stderr.

Example::

    $ servicelayer call users/42
    $ echo $?
    4   # EXIT_API_ERROR -- the API answered with a non-2xx status
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_INVALID_OPTION = 3
"""The request declared an unknown data placement."""

EXIT_API_ERROR = 4
"""The API answered with a status outside the 2xx range."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
