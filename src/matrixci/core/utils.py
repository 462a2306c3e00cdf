"""Console output helpers for matrixci."""

import click

from matrixci.core.constants import Icons


def format_success(msg: str) -> str:
    """Format a success message with green color."""
    return click.style(msg, fg="green")


def format_error(msg: str) -> str:
    """Format an error message with red color and icon."""
    return click.style(f"{Icons.ERROR} {msg}", fg="red")


def format_warning(msg: str) -> str:
    """Format a warning message with yellow color."""
    return click.style(msg, fg="yellow")


class CliOutput:
    """Unified CLI output utility with consistent formatting.

    Coalesces consecutive blank lines to a single blank line to keep console output tidy
    without changing call sites.
    """

    # Track whether the last emitted line was blank
    _last_was_blank: bool = False

    @staticmethod
    def _emit(message: str, *, err: bool = False, formatter=None) -> None:
        if not message or message.strip() == "":
            if CliOutput._last_was_blank:
                return
            click.echo("", err=err)
            CliOutput._last_was_blank = True
            return

        rendered = formatter(message) if formatter else message
        click.echo(rendered, err=err)
        CliOutput._last_was_blank = False

    @staticmethod
    def success(message: str) -> None:
        """Echo success message in green color."""
        CliOutput._emit(message, err=True, formatter=format_success)

    @staticmethod
    def error(message: str, err: bool = True) -> None:
        """Echo error message with red X to stderr by default.

        Parameters
        ----------
        message : str
            Message to echo
        err : bool
            Whether to send to stderr (default: True)
        """
        CliOutput._emit(message, err=err, formatter=format_error)

    @staticmethod
    def warning(message: str) -> None:
        """Echo warning message in yellow color to stderr."""
        CliOutput._emit(message, err=True, formatter=format_warning)

    @staticmethod
    def info(message: str) -> None:
        """Echo info message to stderr, keeping stdout for relayed output."""
        CliOutput._emit(message, err=True)

    @staticmethod
    def plain(message: str, err: bool = False) -> None:
        """Echo plain message without icon.

        Parameters
        ----------
        message : str
            Message to echo
        err : bool
            Whether to send to stderr (default: False)
        """
        CliOutput._emit(message, err=err)

    @staticmethod
    def relay(output: str) -> None:
        """Write captured subprocess output to stdout unchanged."""
        click.echo(output, nl=not output.endswith("\n"))
        CliOutput._last_was_blank = output.endswith("\n\n")
