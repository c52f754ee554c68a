"""Build pipeline: stage table, selection and execution."""

from auroraboot.pipeline.builder import Pipeline, PipelineBuilder, StageDecision
from auroraboot.pipeline.context import BuildContext
from auroraboot.pipeline.executor import BuildResult, PipelineExecutor
from auroraboot.pipeline.stages import STAGES, Stage

__all__ = [
    "STAGES",
    "BuildContext",
    "BuildResult",
    "Pipeline",
    "PipelineBuilder",
    "PipelineExecutor",
    "Stage",
    "StageDecision",
]
