"""
Stratified train/test partitioning of a surgical cohort
"""

import math
from dataclasses import dataclass

import pandas as pd
from sklearn.model_selection import train_test_split

from . import config
from .data_generator import OUTCOME_COLUMN


@dataclass(frozen=True, eq=False)
class Partition:
    """Disjoint training and holdout subsets of one cohort"""
    train: pd.DataFrame
    test: pd.DataFrame
    stratified: bool = True

    @property
    def train_prevalence(self):
        return float(self.train[OUTCOME_COLUMN].mean())

    @property
    def test_prevalence(self):
        return float(self.test[OUTCOME_COLUMN].mean())

    def __len__(self):
        return len(self.train) + len(self.test)


class StratifiedPartitioner:
    """Splits a cohort so both subsets keep the overall complication rate"""

    def __init__(self, train_fraction=config.TRAIN_FRACTION, random_state=config.RANDOM_SEED):
        if not 0 < train_fraction < 1:
            raise ValueError(f"train_fraction must lie strictly between 0 and 1, got {train_fraction}")
        self.train_fraction = train_fraction
        self.random_state = random_state

    def can_stratify(self, y):
        """
        Check whether a stratified split is possible at this fraction.

        Every class needs at least two members, and both subsets need room
        for at least one case per class.
        """
        class_counts = y.value_counts()
        n_classes = len(class_counts)
        n_train = math.floor(len(y) * self.train_fraction)
        n_test = len(y) - n_train

        if n_classes < 2 or class_counts.min() < 2:
            return False
        return n_test >= n_classes and n_train >= n_classes

    def split(self, cohort):
        """Return a Partition of the cohort; the input frame is left untouched"""
        if len(cohort) < 2:
            raise ValueError(f"Cannot partition a cohort of {len(cohort)} case(s)")

        n_train = math.floor(len(cohort) * self.train_fraction)
        if n_train < 1:
            raise ValueError(
                f"train_fraction={self.train_fraction} leaves an empty training subset for a cohort of "
                f"{len(cohort)} cases (0 train, {len(cohort)} test)"
            )

        y = cohort[OUTCOME_COLUMN]
        stratified = self.can_stratify(y)

        if not stratified:
            print(f"WARNING: outcome counts {y.value_counts().to_dict()} are too small to stratify "
                  f"at train_fraction={self.train_fraction}; falling back to an unstratified split")

        train, test = train_test_split(
            cohort,
            train_size=self.train_fraction,
            stratify=y if stratified else None,
            random_state=self.random_state,
        )
        partition = Partition(train=train.copy(), test=test.copy(), stratified=stratified)

        print(f"Training set: {len(partition.train)} cases ({len(partition.train)/len(cohort):.1%})")
        print(f"  Complication rate: {partition.train_prevalence:.2%}")
        print(f"Test set:     {len(partition.test)} cases ({len(partition.test)/len(cohort):.1%})")
        print(f"  Complication rate: {partition.test_prevalence:.2%}")
        return partition
