"""Exception types and user-friendly error formatting."""


class RoundsmanError(Exception):
    """Base class for all roundsman errors."""


class PreconditionError(RoundsmanError):
    """A fatal, non-retryable problem with the caller's input or the target host.

    Raised for an empty run list, missing cookbooks and unsupported
    distributions, always before any mutating remote command.
    """


class TransportError(RoundsmanError):
    """A remote command or file transfer could not be carried out."""


class CommandFailedError(TransportError):
    """A remote command ran but exited with a non-zero status."""

    def __init__(self, command: str, exit_status: int, output: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.output = output
        super().__init__(f"Command failed with exit status {exit_status}: {command}")


class PackagingError(RoundsmanError):
    """The local cookbook archive could not be created."""


class SettingsError(RoundsmanError):
    """A setting is unknown or cannot be read the way it was requested."""


def _format_command_failure(error: CommandFailedError) -> str:
    message = f"Remote command failed (exit status {error.exit_status}): {error.command}"
    if error.output:
        return f"{message}\n{error.output.rstrip()}"
    return message


ERROR_TYPES = {
    PreconditionError: lambda e: str(e),
    CommandFailedError: _format_command_failure,
    TransportError: lambda e: f"Transport error: {e!s}",
    PackagingError: lambda e: f"Could not package cookbooks: {e!s}",
    SettingsError: lambda e: f"Configuration error: {e!s}",
}


def get_error_human_message(error: Exception) -> str:
    """
    Get user-friendly error message based on exception type.

    Args:
        error: The exception to format

    Returns:
        Formatted error message suitable for end users
    """
    for error_type, handler in ERROR_TYPES.items():
        if isinstance(error, error_type):
            return handler(error)
    return str(error)
