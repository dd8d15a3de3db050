"""Watch -> extract -> emit pipeline."""

from statusinformer.pipeline.coordinator import PipelineState, PipelineStateError, StatusInformer

__all__ = ["PipelineState", "PipelineStateError", "StatusInformer"]
