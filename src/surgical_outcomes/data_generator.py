"""
Synthetic cohort generation and dataset file handling for surgical outcomes
"""

import os
from typing import List, NamedTuple

import numpy as np
import pandas as pd

from . import config
from .exceptions import CohortFormatError


class Case(NamedTuple):
    """One simulated patient encounter"""
    age: int
    bmi: float
    asa_class: int
    procedure_type: str
    surgery_duration_minutes: int
    estimated_blood_loss_ml: int
    intraoperative_event: int
    complication_30d: int


FEATURE_COLUMNS = list(Case._fields[:-1])
OUTCOME_COLUMN = 'complication_30d'

# Internal field name -> column header in the dataset file
FILE_COLUMNS = {
    'age': 'Age',
    'bmi': 'BMI',
    'asa_class': 'ASA_Class',
    'procedure_type': 'Procedure_Type',
    'surgery_duration_minutes': 'Surgery_Duration_Minutes',
    'estimated_blood_loss_ml': 'Estimated_Blood_Loss',
    'intraoperative_event': 'Intraoperative_Events',
    'complication_30d': 'Complication_30d',
}

COLUMN_DTYPES = {
    'age': 'int64',
    'bmi': 'float64',
    'asa_class': 'int64',
    'procedure_type': 'object',
    'surgery_duration_minutes': 'int64',
    'estimated_blood_loss_ml': 'int64',
    'intraoperative_event': 'int64',
    'complication_30d': 'int64',
}


def risk_log_odds(df):
    """Ground-truth log-odds of a 30-day complication for each row"""
    log_odds = np.full(len(df), config.RISK_INTERCEPT, dtype=float)
    for column, (coefficient, centre) in config.RISK_COEFFICIENTS.items():
        log_odds += coefficient * (df[column].to_numpy(dtype=float) - centre)
    return log_odds


def risk_probability(df):
    """Ground-truth complication probability, logistic transform of risk_log_odds"""
    return 1.0 / (1.0 + np.exp(-risk_log_odds(df)))


def cases_from_frame(df) -> List[Case]:
    return [Case(*row) for row in df[list(Case._fields)].itertuples(index=False, name=None)]


def frame_from_cases(cases) -> pd.DataFrame:
    df = pd.DataFrame(list(cases), columns=list(Case._fields))
    return df.astype(COLUMN_DTYPES)


class CohortGenerator:
    """Simulates a labelled surgical cohort from a known parametric risk model"""

    def __init__(self, n_cases=config.N_CASES, random_state=config.RANDOM_SEED):
        if isinstance(n_cases, bool) or not isinstance(n_cases, (int, np.integer)) or n_cases < 1:
            raise ValueError(f"n_cases must be a positive integer, got {n_cases!r}")
        self.n_cases = int(n_cases)
        self.random_state = random_state

    def generate(self):
        """
        Draw a cohort of exactly n_cases rows.

        Features are drawn independently in a fixed order from one seeded
        generator, then clipped/capped. The outcome is a Bernoulli draw from
        the ground-truth risk probability.
        """
        print(f"Simulating {self.n_cases} surgical cases (seed={self.random_state})...")

        rng = np.random.default_rng(self.random_state)
        n = self.n_cases

        age = np.round(rng.normal(config.AGE_MEAN, config.AGE_SD, n))
        age = np.clip(age, *config.AGE_RANGE)

        bmi = np.round(rng.normal(config.BMI_MEAN, config.BMI_SD, n), 1)
        bmi = np.clip(bmi, *config.BMI_RANGE)

        asa_class = rng.choice(config.ASA_CLASSES, size=n, p=config.ASA_PROBABILITIES)
        procedure_type = rng.choice(config.PROCEDURE_TYPES, size=n, p=config.PROCEDURE_PROBABILITIES)

        duration = np.round(rng.lognormal(np.log(config.DURATION_MEANLOG), config.DURATION_SDLOG, n))

        blood_loss = np.round(rng.lognormal(np.log(config.BLOOD_LOSS_MEANLOG), config.BLOOD_LOSS_SDLOG, n))
        blood_loss = np.minimum(blood_loss, config.BLOOD_LOSS_CAP)

        intraop_event = rng.binomial(1, config.INTRAOP_EVENT_RATE, n)

        df = pd.DataFrame({
            'age': age.astype(int),
            'bmi': bmi,
            'asa_class': asa_class.astype(int),
            'procedure_type': procedure_type.astype(object),
            'surgery_duration_minutes': duration.astype(int),
            'estimated_blood_loss_ml': blood_loss.astype(int),
            'intraoperative_event': intraop_event.astype(int),
        })

        probability = risk_probability(df)
        df[OUTCOME_COLUMN] = rng.binomial(1, probability).astype(int)

        df = df.astype(COLUMN_DTYPES)
        print(f"Generated {len(df)} cases")
        print(f"Complication rate: {df[OUTCOME_COLUMN].mean():.2%}")
        return df


def save_cohort(df, path=config.DATA_PATH):
    """Write the cohort as CSV with the published column headers"""
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)

    df[list(Case._fields)].rename(columns=FILE_COLUMNS).to_csv(path, index=False)
    print(f"Saved {len(df)} cases to {path}")
    return path


def load_cohort(path=config.DATA_PATH):
    """Read a cohort CSV back into internal column names and dtypes"""
    print(f"Loading cohort from {path}...")
    df_raw = pd.read_csv(path)

    missing = [header for header in FILE_COLUMNS.values() if header not in df_raw.columns]
    if missing:
        raise CohortFormatError(f"{path} is missing column(s): {', '.join(missing)}")

    df = df_raw.rename(columns={header: field for field, header in FILE_COLUMNS.items()})
    df = df[list(Case._fields)].astype(COLUMN_DTYPES)

    print(f"Loaded {len(df)} cases with {len(FEATURE_COLUMNS)} features")
    return df
