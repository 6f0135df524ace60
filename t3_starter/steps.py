"""Provisioning steps for the bootstrap pipeline.

Each step is a small object with an async ``execute(workdir)`` method that
returns a ``StepResult`` instead of raising.  The working directory is always
passed in explicitly; no step changes the process working directory.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .templates import TemplateRenderer
from .utils import (
    console,
    ensure_dir,
    format_command,
    print_plain,
    print_success,
    print_warning,
    remove_tree,
    run_command,
)

PromptFn = Callable[[str], str]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class StepResult(BaseModel):
    """Outcome of a single provisioning step."""

    step: str = Field(..., description="Step name, e.g. 'shadcn-init'")
    success: bool = Field(default=True)
    command: Optional[list[str]] = Field(default=None, description="External command attempted, if any")
    returncode: int = Field(default=0, description="Exit code of the command (1 for local failures)")
    output: str = Field(default="", description="Captured diagnostic output")
    detail: str = Field(default="", description="Human-readable summary of what happened")
    duration_seconds: float = Field(default=0.0, ge=0.0)


# ---------------------------------------------------------------------------
# Base step
# ---------------------------------------------------------------------------


class Step:
    """A single provisioning step.

    Attributes:
        name: Short kebab-case identifier shown in the console and results.
        in_project: Whether the step runs inside the project root (``True``)
            or in the parent directory the project is created in.
    """

    name: str = ""
    in_project: bool = True

    async def execute(self, workdir: Path) -> StepResult:
        raise NotImplementedError

    def describe(self) -> str:
        return self.name

    def _ok(self, detail: str = "", **extra: object) -> StepResult:
        return StepResult(step=self.name, success=True, detail=detail, **extra)

    def _fail(self, detail: str, **extra: object) -> StepResult:
        extra.setdefault("returncode", 1)
        return StepResult(step=self.name, success=False, detail=detail, **extra)


# ---------------------------------------------------------------------------
# External commands
# ---------------------------------------------------------------------------


class CommandStep(Step):
    """Runs one external command with a fixed argument list."""

    def __init__(
        self,
        name: str,
        command: Sequence[str],
        *,
        in_project: bool = True,
        timeout: int | None = None,
        capture: bool = False,
    ) -> None:
        self.name = name
        self.command = list(command)
        self.in_project = in_project
        self.timeout = timeout
        self.capture = capture

    def describe(self) -> str:
        return format_command(self.command)

    async def execute(self, workdir: Path) -> StepResult:
        print_plain(f"$ {self.describe()}")
        returncode, stdout, stderr = await run_command(
            self.command, cwd=workdir, timeout=self.timeout, capture=self.capture
        )
        output = "\n".join(part for part in (stdout, stderr) if part)
        if returncode != 0:
            return self._fail(
                f"Command exited with code {returncode}",
                command=self.command,
                returncode=returncode,
                output=output,
            )
        return self._ok(command=self.command, output=output)


# ---------------------------------------------------------------------------
# Import alias check and confirmation
# ---------------------------------------------------------------------------


ALIAS_MARKER = '"@/*"'

ALIAS_INSTRUCTIONS: tuple[str, ...] = (
    "Please add the following to your tsconfig.json compilerOptions:",
    '    "paths": {',
    '      "@/*": ["./src/*"]',
    "    },",
)


def print_alias_instructions() -> None:
    for line in ALIAS_INSTRUCTIONS:
        print_plain(line)


class MarkerCheckStep(Step):
    """Reports whether a file contains a literal marker.

    The file is never modified.  A missing or unreadable file counts as a
    missing marker: the operator is warned and shown the same remediation
    instructions, and the step still succeeds.
    """

    def __init__(self, name: str, filename: str, marker: str = ALIAS_MARKER) -> None:
        self.name = name
        self.filename = filename
        self.marker = marker

    def describe(self) -> str:
        return f"look for {self.marker} in {self.filename}"

    async def execute(self, workdir: Path) -> StepResult:
        path = workdir / self.filename
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            print_warning(f"{self.filename} not found -- the @ import alias must be added manually.")
            print_alias_instructions()
            return self._ok(f"{self.filename} missing")
        except (OSError, UnicodeDecodeError) as exc:
            print_warning(f"Could not read {self.filename} ({exc}) -- the @ import alias must be checked manually.")
            print_alias_instructions()
            return self._ok(f"{self.filename} unreadable")

        if self.marker in text:
            print_success("@ import alias already configured")
            return self._ok("marker present")

        print_warning(f"Adding @ import alias to {self.filename} manually...")
        print_alias_instructions()
        return self._ok("marker absent")


def _default_prompt(prompt: str) -> str:
    return console.input(prompt)


class ConfirmStep(Step):
    """Asks the operator to confirm the manual alias fix.

    The answer only decides whether the instructions are shown again; the
    pipeline carries on either way.
    """

    SEPARATOR = "-" * 32

    def __init__(
        self,
        name: str,
        prompt: PromptFn | None = None,
        expected: str = "y",
    ) -> None:
        self.name = name
        self.prompt = prompt or _default_prompt
        self.expected = expected

    def describe(self) -> str:
        return "wait for operator confirmation"

    async def execute(self, workdir: Path) -> StepResult:
        print_plain(self.SEPARATOR)
        print_plain("Checking if alias is added...")
        print_plain(self.SEPARATOR)
        print_plain(f"Are you done with adding alias? ({self.expected}/n)")
        print_plain(self.SEPARATOR)

        try:
            answer = self.prompt("> ")
        except EOFError:
            answer = ""

        confirmed = answer.strip() == self.expected
        if not confirmed:
            print_alias_instructions()
        return self._ok("confirmed" if confirmed else f"not confirmed (answer: {answer.strip()!r})")


# ---------------------------------------------------------------------------
# File-system steps
# ---------------------------------------------------------------------------


class MakeDirsStep(Step):
    """Creates a fixed list of directories under the working directory."""

    def __init__(self, name: str, directories: Sequence[str]) -> None:
        self.name = name
        self.directories = list(directories)

    def describe(self) -> str:
        return "mkdir -p " + " ".join(self.directories)

    async def execute(self, workdir: Path) -> StepResult:
        created: list[str] = []
        for rel in self.directories:
            try:
                await asyncio.to_thread(ensure_dir, workdir / rel)
            except OSError as exc:
                return self._fail(f"Could not create {rel}: {exc}")
            created.append(rel)
            print_plain(f"  + {rel}/")
        return self._ok(f"{len(created)} directories ready")


class RemoveTreeStep(Step):
    """Deletes a directory and everything below it, without confirmation."""

    def __init__(self, name: str, target: str) -> None:
        self.name = name
        self.target = target

    def describe(self) -> str:
        return f"rm -rf {self.target}"

    async def execute(self, workdir: Path) -> StepResult:
        try:
            removed = await asyncio.to_thread(remove_tree, workdir / self.target)
        except OSError as exc:
            return self._fail(f"Could not remove {self.target}: {exc}")
        if removed:
            print_plain(f"  - {self.target}/")
            return self._ok(f"removed {self.target}")
        return self._ok(f"{self.target} did not exist")


class TemplateFileStep(Step):
    """Renders a named template into a file under the working directory."""

    def __init__(
        self,
        name: str,
        template: str,
        target: str,
        renderer: TemplateRenderer,
        project_name: str,
        *,
        append: bool = False,
    ) -> None:
        self.name = name
        self.template = template
        self.target = target
        self.renderer = renderer
        self.project_name = project_name
        self.append = append

    def describe(self) -> str:
        return f"{'append to' if self.append else 'write'} {self.target}"

    async def execute(self, workdir: Path) -> StepResult:
        try:
            await self.renderer.render_to_file(
                self.template,
                workdir / self.target,
                {"project_name": self.project_name},
                append=self.append,
            )
        except OSError as exc:
            return self._fail(f"Could not write {self.target}: {exc}")
        print_plain(f"  {'>>' if self.append else '+'} {self.target}")
        return self._ok(self.describe())


async def timed(step: Step, workdir: Path) -> StepResult:
    """Execute *step* and stamp its wall-clock duration on the result."""
    start = time.monotonic()
    result = await step.execute(workdir)
    result.duration_seconds = time.monotonic() - start
    return result
