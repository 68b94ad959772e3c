"""Exception types surfaced by the CLI, each carrying its process exit code."""

from __future__ import annotations

EXIT_FAILURE = 1
EXIT_UNRESOLVED = 127


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""

    exit_code = EXIT_FAILURE


class ConfigError(CliError):
    """Configuration sources could not be loaded or validated."""


class PasswordLoadError(CliError):
    """The default API password could not be read."""


class EndpointResolutionError(CliError):
    """No endpoint, or more than one, matched and no method was given."""

    exit_code = EXIT_UNRESOLVED


class RequestBuildError(CliError):
    """The HTTP request could not be constructed from the command."""


class ParamFormatError(RequestBuildError):
    """A parameter value did not parse in its declared format."""


class OutputError(CliError):
    """The response body could not be written to the output stream."""
