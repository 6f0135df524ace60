"""t3-starter -- bootstraps a Create T3 App project with shadcn/ui and BetterAuth.

Quick usage::

    import asyncio
    from t3_starter import StarterConfig, StarterPipeline

    config = StarterConfig(project_name="my-app")
    result = asyncio.run(StarterPipeline(config).run())
"""

from t3_starter.config import StarterConfig
from t3_starter.pipeline import PipelineError, PipelineResult, StarterPipeline, build_steps
from t3_starter.steps import StepResult
from t3_starter.templates import TemplateRenderer

__all__ = [
    "PipelineError",
    "PipelineResult",
    "StarterConfig",
    "StarterPipeline",
    "StepResult",
    "TemplateRenderer",
    "build_steps",
]
