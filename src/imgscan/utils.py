"""Helper functions used across the codebase."""
import contextlib

from rich.console import Console
from rich.markup import escape

CONSOLE = Console()

_VERBOSE = False


def set_verbose(verbose: bool):
    """Enables or disables the debug messages.

    Arguments:
        verbose: whether `debug` messages get printed.
    """
    global _VERBOSE  # pylint: disable=global-statement

    _VERBOSE = verbose


def print_info(message: str):
    """Prints an informational message.

    Arguments:
        message: informational message to print.
    """
    CONSOLE.print(escape(message))


def log(message):
    """Prints a message with contextual information (i.e. timestamp).

    Arguments:
        message: informational message to print.
    """
    CONSOLE.log(escape(message))


def debug(message: str):
    """Logs a message only when verbose output is enabled."""
    if _VERBOSE:
        CONSOLE.log(f"[dim]{escape(message)}[/]")


def warning(message: str):
    """Logs a message about a recoverable problem."""
    CONSOLE.log(f"[yellow]WARN[/] {escape(message)}")


def error(message: str):
    """Logs an error message.

    Arguments:
        message: error message to print.
    """
    CONSOLE.log(f"[bold red]ERROR[/] [red]{escape(message)}[/]")


def success(message: str):
    """Logs a message about a completed operation."""
    CONSOLE.log(f"[green]{escape(message)}[/]")


_STATUS = None
_STATUS_MESSAGE = None


@contextlib.contextmanager
def print_waiting(message: str, sep: str = " → "):
    """Shows a spinner until the context is exited.

    This context manager can be nested and it will concatenate the messages using
    the given separator.

    ⚠️ The spinner state is global: only use it from the main thread.

    Arguments:
        message: message to show while is context is still getting executed.
    """
    global _STATUS, _STATUS_MESSAGE  # pylint: disable=global-statement

    if _STATUS is None:
        with CONSOLE.status(escape(message)) as status:
            _STATUS = status
            _STATUS_MESSAGE = [message]

            try:
                yield

            finally:
                _STATUS = None
                _STATUS_MESSAGE = None

    else:
        _STATUS_MESSAGE.append(message)
        _STATUS.update(escape(sep.join(_STATUS_MESSAGE)))

        try:
            yield

        finally:
            _STATUS_MESSAGE.pop()
            _STATUS.update(escape(sep.join(_STATUS_MESSAGE)))
