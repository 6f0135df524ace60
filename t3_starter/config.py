"""t3-starter configuration.

Typed run configuration for a single bootstrap. Settings use Pydantic v2
models so a bad project name is rejected before any external tool runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class StarterConfig(BaseModel):
    """Configuration for one ``t3-starter`` run.

    Instances are created once by the CLI entry point and passed to
    ``StarterPipeline``.  The project name is used verbatim as a directory
    name: it is neither sanitised nor checked for collisions.
    """

    project_name: str = Field(..., min_length=1, description="Name of the project directory to create")
    parent_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory in which the project generator is invoked",
    )
    command_timeout: Optional[int] = Field(
        default=None,
        ge=1,
        description="Per-command timeout in seconds (None waits forever)",
    )
    capture_output: bool = Field(
        default=False,
        description="Capture delegated tool output instead of streaming it to the terminal",
    )

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_root(self) -> Path:
        """Directory produced by the project generator."""
        return self.parent_dir / self.project_name

    @property
    def tsconfig_path(self) -> Path:
        """TypeScript config inspected for the ``@`` import alias."""
        return self.project_root / "tsconfig.json"

    @property
    def env_path(self) -> Path:
        """Environment file that receives the BetterAuth block."""
        return self.project_root / ".env"

    @property
    def schema_dir(self) -> Path:
        """Prisma directory wiped before the auth schema is regenerated."""
        return self.project_root / "prisma"

    @property
    def schema_path(self) -> Path:
        """Prisma schema file the ``Post`` model is appended to."""
        return self.schema_dir / "schema.prisma"
