"""
Holdout evaluation of fitted risk models: ROC, AUC and confusion-matrix statistics
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import auc, confusion_matrix, roc_curve

from . import config
from .data_generator import OUTCOME_COLUMN


class _Undefined:
    """Marker for a metric whose denominator is zero"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'undefined'

    __str__ = __repr__

    def __format__(self, format_spec):
        return 'undefined'

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


def safe_ratio(numerator, denominator):
    if denominator == 0:
        return UNDEFINED
    return numerator / denominator


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts of predicted vs actual class, with complication as the positive class"""
    tp: int
    fp: int
    tn: int
    fn: int

    @classmethod
    def from_labels(cls, y_true, y_pred):
        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
        return cls(tp=int(tp), fp=int(fp), tn=int(tn), fn=int(fn))

    @property
    def total(self):
        return self.tp + self.fp + self.tn + self.fn

    @property
    def accuracy(self):
        return safe_ratio(self.tp + self.tn, self.total)

    @property
    def sensitivity(self):
        return safe_ratio(self.tp, self.tp + self.fn)

    @property
    def specificity(self):
        return safe_ratio(self.tn, self.tn + self.fp)

    @property
    def positive_predictive_value(self):
        return safe_ratio(self.tp, self.tp + self.fp)

    @property
    def negative_predictive_value(self):
        return safe_ratio(self.tn, self.tn + self.fn)

    @property
    def f1_score(self):
        return safe_ratio(2 * self.tp, 2 * self.tp + self.fp + self.fn)

    @property
    def balanced_accuracy(self):
        if self.sensitivity is UNDEFINED or self.specificity is UNDEFINED:
            return UNDEFINED
        return (self.sensitivity + self.specificity) / 2

    @property
    def prevalence(self):
        return safe_ratio(self.tp + self.fn, self.total)

    @property
    def detection_rate(self):
        return safe_ratio(self.tp, self.total)

    @property
    def detection_prevalence(self):
        return safe_ratio(self.tp + self.fp, self.total)

    @property
    def no_information_rate(self):
        return safe_ratio(max(self.tp + self.fn, self.tn + self.fp), self.total)

    @property
    def kappa(self):
        """Cohen's kappa: agreement beyond what the marginal totals predict"""
        if self.total == 0:
            return UNDEFINED
        expected = ((self.tp + self.fp) * (self.tp + self.fn)
                    + (self.fn + self.tn) * (self.fp + self.tn)) / self.total ** 2
        return safe_ratio(self.accuracy - expected, 1 - expected)

    def accuracy_interval(self, confidence_level=config.CONFIDENCE_LEVEL):
        """Exact Clopper-Pearson interval for accuracy"""
        if self.total == 0:
            return UNDEFINED, UNDEFINED
        ci = stats.binomtest(self.tp + self.tn, self.total).proportion_ci(
            confidence_level=confidence_level, method='exact'
        )
        return float(ci.low), float(ci.high)

    def as_table(self):
        """2x2 table with predicted class as rows and actual class as columns"""
        return pd.DataFrame(
            [[self.tn, self.fn], [self.fp, self.tp]],
            index=pd.Index(['No complication', 'Complication'], name='Predicted'),
            columns=pd.Index(['No complication', 'Complication'], name='Actual'),
        )

    def metrics(self):
        ci_low, ci_high = self.accuracy_interval()
        return {
            'accuracy': self.accuracy,
            'accuracy_ci_lower': ci_low,
            'accuracy_ci_upper': ci_high,
            'no_information_rate': self.no_information_rate,
            'kappa': self.kappa,
            'sensitivity': self.sensitivity,
            'specificity': self.specificity,
            'positive_predictive_value': self.positive_predictive_value,
            'negative_predictive_value': self.negative_predictive_value,
            'f1_score': self.f1_score,
            'prevalence': self.prevalence,
            'detection_rate': self.detection_rate,
            'detection_prevalence': self.detection_prevalence,
            'balanced_accuracy': self.balanced_accuracy,
        }


@dataclass(frozen=True, eq=False)
class RocCurve:
    """False/true positive rates ordered by descending threshold"""
    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray

    @property
    def points(self) -> List[Tuple[float, float]]:
        return list(zip(self.fpr.tolist(), self.tpr.tolist()))

    def __len__(self):
        return len(self.fpr)


@dataclass(frozen=True, eq=False)
class EvaluationResult:
    model_name: str
    probabilities: np.ndarray
    predicted: np.ndarray
    actual: np.ndarray
    roc: RocCurve
    auc: object
    confusion: ConfusionMatrix
    metrics: Dict[str, object] = field(default_factory=dict)

    def summary(self):
        row = {'model': self.model_name, 'auc': self.auc}
        row.update(self.metrics)
        return row


class Evaluator:
    """Scores a holdout set with any fitted RiskModel"""

    def __init__(self, threshold=config.CLASSIFICATION_THRESHOLD):
        self.threshold = threshold

    @staticmethod
    def roc(actual, probabilities):
        """
        ROC curve over every distinct predicted probability.

        Returns the curve and its trapezoidal AUC. The curve is empty and the
        AUC undefined when the labels contain only one class.
        """
        if len(np.unique(actual)) < 2:
            empty = np.array([], dtype=float)
            return RocCurve(fpr=empty, tpr=empty, thresholds=empty), UNDEFINED

        fpr, tpr, thresholds = roc_curve(actual, probabilities, pos_label=1, drop_intermediate=False)
        return RocCurve(fpr=fpr, tpr=tpr, thresholds=thresholds), float(auc(fpr, tpr))

    def evaluate(self, model, test):
        print(f"\nEvaluating {model.name} on {len(test)} holdout cases...")

        actual = test[OUTCOME_COLUMN].to_numpy(dtype=int)
        probabilities = model.predict_probability(test)
        predicted = (probabilities > self.threshold).astype(int)

        roc, roc_auc = self.roc(actual, probabilities)
        confusion = ConfusionMatrix.from_labels(actual, predicted)
        metrics = confusion.metrics()

        print(f"AUC-ROC: {roc_auc:.3f}")
        print(f"Accuracy: {metrics['accuracy']:.3f}")
        print(f"Sensitivity: {metrics['sensitivity']:.3f}, Specificity: {metrics['specificity']:.3f}")
        print("Confusion matrix:")
        print(confusion.as_table())

        return EvaluationResult(
            model_name=model.name,
            probabilities=probabilities,
            predicted=predicted,
            actual=actual,
            roc=roc,
            auc=roc_auc,
            confusion=confusion,
            metrics=metrics,
        )

    @staticmethod
    def compare(results):
        """One row of headline metrics per evaluated model"""
        return pd.DataFrame([result.summary() for result in results])
