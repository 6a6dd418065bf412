"""Pipeline orchestration for AllKnower."""

from allknower.pipeline.brain_dump import BrainDumpPipeline

__all__ = ["BrainDumpPipeline"]
