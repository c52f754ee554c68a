"""Sequential stage execution."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from auroraboot.exceptions import StageExecutionError
from auroraboot.pipeline.builder import Pipeline
from auroraboot.pipeline.context import BuildContext


logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    trail: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)


class PipelineExecutor:
    """Runs stages in order and stops at the first failure.
    
    ``trail`` lists every stage identifier entered, including a failing
    one, so callers can tell stages that never started from stages that
    started and failed.
    """
    
    def __init__(self, pipeline: Pipeline, on_stage: Optional[Callable[[str], None]] = None):
        self.pipeline = pipeline
        self.on_stage = on_stage
        self.trail: List[str] = []
        self.current: Optional[str] = None
        self.error: Optional[StageExecutionError] = None
        
    async def run(self, context: BuildContext) -> BuildResult:
        for stage in self.pipeline.stages:
            self.current = stage.id
            self.trail.append(stage.id)
            logger.info(f"Running stage {stage.id}: {stage.description}")
            if self.on_stage:
                self.on_stage(stage.id)
                
            try:
                await stage.action(context)
            except Exception as e:
                logger.error(f"Stage {stage.id} failed: {e}")
                self.error = StageExecutionError(stage.id, e, self.trail)
                raise self.error from e
                
            logger.debug(f"Stage {stage.id} completed")
            
        self.current = None
        return BuildResult(trail=list(self.trail), outputs=list(context.outputs))
