import pandas as pd
import pytest

from surgical_outcomes.data_generator import CohortGenerator
from surgical_outcomes.partitioner import StratifiedPartitioner


def test_subsets_cover_cohort_without_overlap(cohort, partition):
    assert len(partition.train) + len(partition.test) == len(cohort)
    assert set(partition.train.index).isdisjoint(partition.test.index)
    assert set(partition.train.index) | set(partition.test.index) == set(cohort.index)


def test_train_fraction_is_respected(partition):
    assert len(partition.train) == 800
    assert len(partition.test) == 200


def test_prevalence_is_preserved(cohort, partition):
    overall = cohort['complication_30d'].mean()
    assert partition.stratified
    assert abs(partition.train_prevalence - overall) <= 0.05
    assert abs(partition.test_prevalence - overall) <= 0.05


def test_split_is_reproducible(cohort):
    first = StratifiedPartitioner(random_state=11).split(cohort)
    second = StratifiedPartitioner(random_state=11).split(cohort)
    assert list(first.test.index) == list(second.test.index)


def test_split_does_not_modify_cohort(cohort):
    before = cohort.copy()
    StratifiedPartitioner(random_state=3).split(cohort)
    pd.testing.assert_frame_equal(cohort, before)


def test_falls_back_when_minority_class_is_too_small():
    cohort = CohortGenerator(n_cases=50, random_state=1).generate()
    cohort['complication_30d'] = 0
    cohort.loc[cohort.index[0], 'complication_30d'] = 1

    partition = StratifiedPartitioner(random_state=1).split(cohort)

    assert not partition.stratified
    assert len(partition) == 50
    assert set(partition.train.index).isdisjoint(partition.test.index)


def test_can_stratify_needs_room_for_each_class():
    partitioner = StratifiedPartitioner(train_fraction=0.8)
    assert partitioner.can_stratify(pd.Series([0] * 90 + [1] * 10))
    assert not partitioner.can_stratify(pd.Series([0] * 99 + [1]))
    assert not partitioner.can_stratify(pd.Series([0] * 5))
    assert not partitioner.can_stratify(pd.Series([0, 0, 1, 1, 1]))


@pytest.mark.parametrize("fraction", [0, 1, 1.5, -0.2])
def test_invalid_train_fraction_is_rejected(fraction):
    with pytest.raises(ValueError):
        StratifiedPartitioner(train_fraction=fraction)


def test_tiny_cohort_is_rejected(cohort):
    with pytest.raises(ValueError):
        StratifiedPartitioner().split(cohort.head(1))


def test_fraction_leaving_empty_training_subset_is_rejected():
    small = CohortGenerator(n_cases=3, random_state=1).generate()
    with pytest.raises(ValueError, match="empty training subset"):
        StratifiedPartitioner(train_fraction=0.2).split(small)
