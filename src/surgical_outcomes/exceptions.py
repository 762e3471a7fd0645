"""
Errors raised by the surgical outcomes modelling pipeline
"""


class SurgicalOutcomesError(Exception):
    """Base class for all pipeline errors"""


class DegenerateFitError(SurgicalOutcomesError):
    """Training data cannot support a meaningful model (empty or single-class)"""


class UnseenCategoryError(SurgicalOutcomesError):
    """A categorical level at inference time was never seen during fitting"""

    def __init__(self, feature, levels):
        self.feature = feature
        self.levels = sorted(str(level) for level in levels)
        super().__init__(
            f"Unseen {feature} level(s) {self.levels}; the encoder only knows levels seen in training"
        )


class ModelNotFittedError(SurgicalOutcomesError):
    """Prediction was requested from a model that has not been fitted"""


class CohortFormatError(SurgicalOutcomesError):
    """A cohort file does not have the expected columns"""
