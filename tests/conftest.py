import matplotlib

matplotlib.use("Agg")

import pytest

from surgical_outcomes.data_generator import CohortGenerator
from surgical_outcomes.models import LogisticRiskModel, RandomForestRiskModel
from surgical_outcomes.partitioner import StratifiedPartitioner

SEED = 38


@pytest.fixture(scope="session")
def cohort():
    return CohortGenerator(n_cases=1000, random_state=SEED).generate()


@pytest.fixture(scope="session")
def partition(cohort):
    return StratifiedPartitioner(train_fraction=0.8, random_state=SEED).split(cohort)


@pytest.fixture(scope="session")
def logistic_model(partition):
    return LogisticRiskModel(random_state=SEED).fit(partition.train)


@pytest.fixture(scope="session")
def forest_model(partition):
    return RandomForestRiskModel(random_state=SEED, n_estimators=100).fit(partition.train)
