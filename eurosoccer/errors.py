"""
Exceptions raised when pipeline stages break each other's contracts.
"""


class PipelineInvariantError(RuntimeError):
    """A stage produced or received data that violates a downstream invariant"""


class SeasonLabelError(PipelineInvariantError, ValueError):
    """A season label could not be mapped to a calendar year"""

    def __init__(self, label):
        self.label = label
        super().__init__(
            f"Unparseable season label {label!r}: expected 'YYYY/YYYY' "
            f"(consecutive years) or 'YYYY'"
        )
