"""
Surgical outcomes risk modelling: cohort simulation, model fitting and evaluation
"""

from .data_generator import Case, CohortGenerator, load_cohort, save_cohort
from .partitioner import Partition, StratifiedPartitioner
from .models import FeatureEncoder, RiskModel, LogisticRiskModel, RandomForestRiskModel
from .evaluator import UNDEFINED, ConfusionMatrix, EvaluationResult, Evaluator, RocCurve
from .summary import CohortSummarizer
from .visualizer import Visualizer
from .report import ReportBuilder

__all__ = [
    'Case',
    'CohortGenerator',
    'load_cohort',
    'save_cohort',
    'Partition',
    'StratifiedPartitioner',
    'FeatureEncoder',
    'RiskModel',
    'LogisticRiskModel',
    'RandomForestRiskModel',
    'UNDEFINED',
    'ConfusionMatrix',
    'EvaluationResult',
    'Evaluator',
    'RocCurve',
    'CohortSummarizer',
    'Visualizer',
    'ReportBuilder',
]
