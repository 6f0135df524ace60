"""Jinja2 template rendering for the injected project files.

Every file the bootstrap writes into the generated project is a named
template stored under ``t3_starter/templates/``.  Templates are rendered
with a one-key context (``project_name``) and are kept apart from the
pipeline so their output can be checked on its own.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .utils import write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

# name -> template file, relative to the template directory
TEMPLATES: dict[str, str] = {
    "env": "env.j2",
    "auth_config": "auth.ts.j2",
    "auth_route": "auth_route.ts.j2",
    "auth_client": "auth_client.ts.j2",
    "post_model": "post_model.prisma.j2",
    "login_page": "login_page.tsx.j2",
    "register_page": "register_page.tsx.j2",
    "home_page": "home_page.tsx.j2",
    "readme": "README.md.j2",
}


class UnknownTemplateError(KeyError):
    """Raised when a template name is not in the registry."""


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders the named file templates.

    Rendering preserves the payloads byte for byte: trailing newlines are
    kept and no autoescaping is applied, since the output is TypeScript,
    Prisma, dotenv and Markdown rather than HTML.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    # -- Single template rendering -----------------------------------------

    def render(self, name: str, context: dict[str, Any]) -> str:
        """Render the template registered under *name*.

        Raises:
            UnknownTemplateError: If *name* is not in ``TEMPLATES``.
        """
        try:
            filename = TEMPLATES[name]
        except KeyError:
            raise UnknownTemplateError(name) from None
        template = self.env.get_template(filename)
        return template.render(**context)

    def render_for_project(self, name: str, project_name: str) -> str:
        """Render *name* with the single ``project_name`` substitution."""
        return self.render(name, {"project_name": project_name})

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        name: str,
        output_path: str | Path,
        context: dict[str, Any],
        *,
        append: bool = False,
    ) -> Path:
        """Render a template and write (or append) the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(name, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content, append=append)
        return out

    # -- Utility -----------------------------------------------------------

    def list_templates(self) -> list[str]:
        """Return the registered template names, sorted."""
        return sorted(TEMPLATES)
