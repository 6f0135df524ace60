"""t3-starter pipeline orchestrator.

Bootstraps a Create T3 App project with shadcn/ui and BetterAuth:

 1. create-app            -- run the T3 project generator
 2. check-import-alias    -- look for the ``@`` alias in tsconfig.json
 3. confirm-import-alias  -- ask the operator to confirm the manual fix
 4. shadcn-init / 5. shadcn-add -- initialise UI components
 6. install-better-auth   -- add the auth library
 7. create-directories    -- route-group directories
 8. reset-prisma-schema   -- wipe ``prisma/``
 9-12. auth wiring        -- .env block, server config, route, client
13. generate-auth-schema  -- BetterAuth CLI writes a fresh Prisma schema
14. append-post-model     -- add the ``Post`` model
15. db-push               -- push the schema to the database
16-19. pages and README

Steps run strictly in order and the first failure stops the run.  Nothing
is rolled back.

Usage::

    t3-starter my-app
    python -m t3_starter my-app
"""

from __future__ import annotations

import asyncio
import sys
import time
import traceback
from typing import Optional

from pydantic import BaseModel, Field, computed_field
from rich.markup import escape
from rich.panel import Panel

from .config import StarterConfig
from .steps import (
    CommandStep,
    ConfirmStep,
    MakeDirsStep,
    MarkerCheckStep,
    PromptFn,
    RemoveTreeStep,
    Step,
    StepResult,
    TemplateFileStep,
    timed,
)
from .templates import TemplateRenderer
from .utils import (
    console,
    err_console,
    format_command,
    format_duration,
    print_error,
    print_plain,
    print_step_header,
    print_success,
    print_summary_table,
)

# ---------------------------------------------------------------------------
# Fixed commands and paths
# ---------------------------------------------------------------------------

UI_COMPONENTS: tuple[str, ...] = ("button", "input", "card", "label")

AUTH_DIRECTORIES: tuple[str, ...] = (
    "src/lib",
    "src/app/api/auth/[...all]",
    "src/app/(auth)/login",
    "src/app/(auth)/register",
)

COMPLETION_LINES: tuple[str, ...] = (
    "Project setup complete! Login page: /login, Register page: /register",
    "BetterAuth environment variables added to .env",
    "Remember to change BETTER_AUTH_SECRET in production!",
    "Update your PostgreSQL DATABASE_URL in .env if needed",
)


def create_app_command(project_name: str) -> list[str]:
    """Argument list for the T3 project generator."""
    return [
        "npx", "create-t3-app@latest", project_name,
        "--CI", "--trpc", "--prisma", "--tailwind",
        "--dbProvider", "postgres",
        "--appRouter", "--noInstall",
    ]


# ---------------------------------------------------------------------------
# Exceptions and results
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised by ``run_or_raise`` when a step fails."""

    def __init__(self, result: StepResult) -> None:
        self.result = result
        super().__init__(f"Step {result.step} failed: {result.detail}")


class PipelineResult(BaseModel):
    """Outcome of a whole bootstrap run."""

    project_name: str
    project_root: str
    steps: list[StepResult] = Field(default_factory=list)
    failed_step: Optional[str] = Field(default=None)
    exit_code: int = Field(default=0)
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @computed_field  # type: ignore[misc]
    @property
    def success(self) -> bool:
        """True when every step ran and succeeded."""
        return self.failed_step is None

    def step_names(self) -> list[str]:
        return [r.step for r in self.steps]


def exit_code_for(result: StepResult) -> int:
    """Map a failed step to a process exit code.

    Command failures propagate the tool's own code.  A tool killed by signal
    N exits 128 + N, as a shell would report it.  Anything else collapses to 1.
    """
    if result.returncode > 0:
        return result.returncode
    if result.returncode < 0:
        return 128 - result.returncode
    return 1


# ---------------------------------------------------------------------------
# Step list
# ---------------------------------------------------------------------------


def build_steps(
    config: StarterConfig,
    renderer: TemplateRenderer | None = None,
    prompt: PromptFn | None = None,
) -> list[Step]:
    """Return the ordered provisioning steps for *config*."""
    renderer = renderer or TemplateRenderer()
    name = config.project_name

    def command(step_name: str, argv: list[str], *, in_project: bool = True) -> CommandStep:
        return CommandStep(
            step_name,
            argv,
            in_project=in_project,
            timeout=config.command_timeout,
            capture=config.capture_output,
        )

    def template(step_name: str, template_name: str, target: str, *, append: bool = False) -> TemplateFileStep:
        return TemplateFileStep(step_name, template_name, target, renderer, name, append=append)

    return [
        command("create-app", create_app_command(name), in_project=False),
        MarkerCheckStep("check-import-alias", "tsconfig.json"),
        ConfirmStep("confirm-import-alias", prompt=prompt),
        command("shadcn-init", ["npx", "shadcn@latest", "init", "-y"]),
        command("shadcn-add", ["npx", "shadcn@latest", "add", *UI_COMPONENTS]),
        command("install-better-auth", ["npm", "install", "better-auth"]),
        MakeDirsStep("create-directories", AUTH_DIRECTORIES),
        RemoveTreeStep("reset-prisma-schema", "prisma"),
        template("append-env", "env", ".env", append=True),
        template("write-auth-config", "auth_config", "src/lib/auth.ts"),
        template("write-auth-route", "auth_route", "src/app/api/auth/[...all]/route.ts"),
        template("write-auth-client", "auth_client", "src/lib/auth-client.ts"),
        command("generate-auth-schema", ["npx", "@better-auth/cli", "generate"]),
        template("append-post-model", "post_model", "prisma/schema.prisma", append=True),
        command("db-push", ["npm", "run", "db:push", "--force-reset"]),
        template("write-login-page", "login_page", "src/app/(auth)/login/page.tsx"),
        template("write-register-page", "register_page", "src/app/(auth)/register/page.tsx"),
        template("write-home-page", "home_page", "src/app/page.tsx"),
        template("write-readme", "readme", "README.md"),
    ]


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class StarterPipeline:
    """Runs the provisioning steps in order, stopping at the first failure.

    Attributes:
        config: Run configuration.
        steps: Ordered step list (see ``build_steps``).
    """

    def __init__(
        self,
        config: StarterConfig,
        *,
        prompt: PromptFn | None = None,
        renderer: TemplateRenderer | None = None,
        steps: list[Step] | None = None,
    ) -> None:
        self.config = config
        self.steps = steps if steps is not None else build_steps(config, renderer, prompt)

    async def run(self) -> PipelineResult:
        """Execute every step and return the collected results.

        Step failures never raise; they end the run and are reported in the
        returned ``PipelineResult``.
        """
        pipeline_start = time.monotonic()
        result = PipelineResult(
            project_name=self.config.project_name,
            project_root=str(self.config.project_root),
        )

        console.print(
            Panel(
                f"[bold bright_cyan]t3-starter[/bold bright_cyan]\n"
                f"Project : {escape(self.config.project_name)}\n"
                f"Location: {escape(str(self.config.project_root))}\n"
                f"Steps   : {len(self.steps)}",
                title="[bold]Bootstrap Start[/bold]",
                border_style="bright_cyan",
            )
        )

        total = len(self.steps)
        for index, step in enumerate(self.steps, 1):
            print_step_header(index, total, step.name)
            workdir = self.config.project_root if step.in_project else self.config.parent_dir

            try:
                step_result = await timed(step, workdir)
            except Exception as exc:
                tb = traceback.format_exc()
                step_result = StepResult(
                    step=step.name,
                    success=False,
                    returncode=1,
                    output=tb,
                    detail=f"{type(exc).__name__}: {exc}",
                )

            result.steps.append(step_result)

            if not step_result.success:
                result.failed_step = step.name
                result.exit_code = exit_code_for(step_result)
                self._report_failure(step, step_result)
                break

            console.print(f"[dim]{escape(step.name)} done in {format_duration(step_result.duration_seconds)}[/dim]")

        result.duration_seconds = time.monotonic() - pipeline_start
        if result.success:
            self._print_completion_banner(result)
        return result

    async def run_or_raise(self) -> PipelineResult:
        """Like ``run`` but raise ``PipelineError`` on the first failed step."""
        result = await self.run()
        if not result.success:
            raise PipelineError(result.steps[-1])
        return result

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _report_failure(self, step: Step, step_result: StepResult) -> None:
        print_error(f"Step {step.name} failed: {step_result.detail}")
        if step_result.command:
            print_error(f"Command: {format_command(step_result.command)}")
            print_error(f"Exit code: {step_result.returncode}")
        if step_result.output:
            err_console.print(f"[dim]{escape(step_result.output)}[/dim]")
        print_error(f"Nothing was rolled back; {self.config.project_root} is left as-is.")

    def _print_completion_banner(self, result: PipelineResult) -> None:
        print_summary_table(
            {
                "Project": result.project_name,
                "Location": result.project_root,
                "Steps run": str(len(result.steps)),
                "Duration": format_duration(result.duration_seconds),
            },
            title="Bootstrap Results",
        )
        console.print(
            Panel(
                "\n".join(escape(line) for line in COMPLETION_LINES),
                title="[bold]Done[/bold]",
                border_style="bold green",
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``t3-starter`` and ``python -m t3_starter``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="t3-starter",
        description="Bootstrap a Create T3 App project with shadcn/ui and BetterAuth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  t3-starter my-app\n"
            "  python -m t3_starter my-app\n"
            "  t3-starter -- -my-app   (name starting with a dash)\n"
        ),
    )
    parser.add_argument(
        "project_name",
        nargs="?",
        default="",
        metavar="project-name",
        help="Name of the project directory to create",
    )
    # anything after the project name is ignored
    parser.add_argument("extra", nargs="*", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    if not args.project_name:
        err_console.print(f"Usage: {parser.prog} <project-name>", markup=False, highlight=False)
        sys.exit(1)

    config = StarterConfig(project_name=args.project_name)
    pipeline = StarterPipeline(config)

    try:
        result = asyncio.run(pipeline.run())
    except KeyboardInterrupt:
        print_plain("")
        print_error("Operation cancelled by user.")
        sys.exit(130)

    if not result.success:
        sys.exit(result.exit_code)

    print_success(f"Your new project is ready at: ./{config.project_name}")


if __name__ == "__main__":
    main()
