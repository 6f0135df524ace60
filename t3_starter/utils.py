"""Shared utility functions for t3-starter.

Provides async command execution, file-system helpers and Rich-based console
reporting.  Nothing in here knows about the bootstrap steps themselves.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# Return code used when the executable (or its working directory) is missing,
# matching what a POSIX shell reports for "command not found".
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126
# Same code coreutils `timeout` exits with.
COMMAND_TIMED_OUT = 124

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run an external command asynchronously and wait for it to finish.

    Args:
        cmd: Argument list; ``cmd[0]`` is resolved on ``PATH``.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits indefinitely.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams, so interactive tools keep working).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A child killed by signal N
        reports ``-N``; a timeout reports ``COMMAND_TIMED_OUT``.  If *capture*
        is ``False`` the stdout/stderr strings will be empty.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except FileNotFoundError as exc:
        return (COMMAND_NOT_FOUND, "", f"Unable to start {cmd[0]}: {exc}")
    except PermissionError as exc:
        return (COMMAND_NOT_EXECUTABLE, "", f"Unable to start {cmd[0]}: {exc}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (COMMAND_TIMED_OUT, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The ``Path`` object that was created or already existed.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def remove_tree(path: str | Path) -> bool:
    """Recursively delete *path*, like ``rm -rf``.

    A missing path is not an error.  Plain files and symlinks are unlinked
    rather than traversed.

    Returns:
        ``True`` if something was removed, ``False`` if nothing existed.
    """
    target = Path(path)
    if target.is_symlink() or target.is_file():
        target.unlink()
        return True
    if target.is_dir():
        shutil.rmtree(target)
        return True
    return False


def write_text(path: str | Path, content: str, *, append: bool = False) -> Path:
    """Write *content* to *path*, creating parent directories.

    With ``append=True`` the content is added after whatever the file already
    holds (the file is created if missing); otherwise the file is truncated.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("a" if append else "w", encoding="utf-8", newline="") as fh:
        fh.write(content)
    return file_path


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


def format_command(cmd: list[str]) -> str:
    """Render an argument list the way an operator would type it."""
    return " ".join(f'"{arg}"' if (not arg or " " in arg) else arg for arg in cmd)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step_header(index: int, total: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline step."""
    console.print()
    console.print(
        Rule(
            f"[bold bright_cyan] Step {index}/{total}: {escape(name)} [/bold bright_cyan]",
            style="bright_cyan",
        )
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), escape(str(value)))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message to stderr."""
    err_console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_plain(message: str) -> None:
    """Print text verbatim, without markup or highlighting."""
    console.print(message, markup=False, highlight=False)
