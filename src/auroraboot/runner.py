"""Top-level build entry point."""

import logging
from typing import Callable, Optional

from auroraboot.models.options import BuildOptions
from auroraboot.pipeline import BuildContext, BuildResult, PipelineBuilder, PipelineExecutor
from auroraboot.pipeline.context import ArmBuilder


logger = logging.getLogger(__name__)


async def run_build(
    options: BuildOptions,
    arm_builder: Optional[ArmBuilder] = None,
    on_stage: Optional[Callable[[str], None]] = None,
) -> BuildResult:
    """Select the stages for ``options`` and run them."""
    pipeline = PipelineBuilder().build(options)
    context = BuildContext.create(options, arm_builder=arm_builder)
    
    executor = PipelineExecutor(pipeline, on_stage=on_stage)
    result = await executor.run(context)
    
    logger.info(f"Build finished, stages run: {', '.join(result.trail)}")
    return result
