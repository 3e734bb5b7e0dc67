"""
Error taxonomy for the analysis pipeline.

Only InsufficientDataError aborts an invocation. Everything else is scoped to a
single outcome or record and degrades to "no result for this item".
"""


class TriggerAnalysisError(Exception):
    """Base class for all analysis errors."""


class InsufficientDataError(TriggerAnalysisError):
    """Too few raw events to run any analysis. Retry once more data is logged."""

    def __init__(self, exposure_count: int, outcome_count: int, floor: int) -> None:
        self.exposure_count = exposure_count
        self.outcome_count = outcome_count
        self.floor = floor
        super().__init__(
            f"Insufficient data for analysis: {exposure_count} exposures and "
            f"{outcome_count} outcomes (need at least {floor} of each)"
        )


class OutcomeSkippedError(TriggerAnalysisError):
    """One outcome could not be validated; the rest of the run continues."""

    reason = "skipped"

    def __init__(self, outcome_id: str, detail: str = "") -> None:
        self.outcome_id = outcome_id
        self.detail = detail
        message = f"Outcome {outcome_id!r} {self.reason}"
        super().__init__(f"{message}: {detail}" if detail else message)


class InsufficientSamplesError(OutcomeSkippedError):
    reason = "has too few joined samples"


class InsufficientClassBalanceError(OutcomeSkippedError):
    reason = "has insufficient class balance"


class DegenerateFeatureError(OutcomeSkippedError):
    reason = "has no feature with training variance"


class ComputationError(TriggerAnalysisError):
    """A single raw record could not be normalized."""

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        super().__init__(f"Record {index}: {message}" if index is not None else message)
