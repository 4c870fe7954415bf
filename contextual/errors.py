"""Exceptions raised by the pipeline itself.

Faults raised by stages and handlers are never wrapped in these; they
propagate unchanged to the HTTP layer.
"""


class PipelineError(Exception):
    """Base class for errors raised by the contextual package."""


class StageContractError(PipelineError):
    """Raised when a stage's inbound step doesn't return a Context."""

    def __init__(self, stage_name: str, returned: object):
        super().__init__(
            f"Stage {stage_name!r} inbound returned {type(returned).__name__}, "
            f"expected Context"
        )
        self.stage_name = stage_name
        self.returned = returned
