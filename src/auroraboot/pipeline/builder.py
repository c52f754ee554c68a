"""Stage selection."""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from auroraboot.exceptions import ConfigurationError
from auroraboot.models.artifact import ArtifactInfo
from auroraboot.models.options import BuildOptions, SourceKind
from auroraboot.pipeline.stages import STAGES, Stage


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageDecision:
    stage: Stage
    applies: bool


@dataclass(frozen=True)
class Pipeline:
    """Ordered, applicable stages for one build request."""
    stages: Tuple[Stage, ...]
    decisions: Tuple[StageDecision, ...]

    @property
    def ids(self) -> List[str]:
        return [stage.id for stage in self.stages]


class PipelineBuilder:
    """Filters the master stage list against build options."""
    
    def __init__(self, stages: Sequence[Stage] = STAGES):
        self.stages = tuple(stages)
        
    def validate(self, options: BuildOptions) -> None:
        """Raise ConfigurationError for options no pipeline can satisfy."""
        if options.container_image and options.squashfs_url:
            raise ConfigurationError("container_image and squashfs_url are mutually exclusive")
            
        kind = options.source_kind
        if kind is None:
            raise ConfigurationError(
                "No source given: set container_image or the ISO release fields"
            )
        if kind is SourceKind.ISO and not options.squashfs_url:
            if ArtifactInfo.from_options(options) is None:
                raise ConfigurationError(
                    "An ISO source needs flavor, flavor_release and artifact_version"
                )
                
        if not options.requested_formats:
            raise ConfigurationError("No output format requested (disk.raw, disk.gce, disk.vhd, disk.mbr, disk.arm)")
            
    def plan(self, options: BuildOptions) -> List[StageDecision]:
        """Decide applicability of every known stage, in master order."""
        self.validate(options)
        return [StageDecision(stage, bool(stage.applies(options))) for stage in self.stages]
        
    def build(self, options: BuildOptions) -> Pipeline:
        """Keep the applicable stages. Skipped stages are reported by ``plan`` only."""
        decisions = self.plan(options)
        pipeline = Pipeline(
            stages=tuple(d.stage for d in decisions if d.applies),
            decisions=tuple(decisions),
        )
        logger.debug(f"Pipeline has {len(pipeline.stages)} stages")
        return pipeline
