"""Request pipelines: executor, reusable steps and per-route chains."""

from .executor import Continue, Fail, Halt, Pipeline, PipelineResponse, Step, error_response, step

__all__ = ["Continue", "Fail", "Halt", "Pipeline", "PipelineResponse", "Step", "error_response", "step"]
