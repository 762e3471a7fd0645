"""
Complication risk models: logistic regression and random forest
"""

from abc import ABC, abstractmethod

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.ensemble import RandomForestClassifier

from . import config
from .data_generator import OUTCOME_COLUMN, frame_from_cases
from .exceptions import DegenerateFitError, ModelNotFittedError, UnseenCategoryError

CATEGORICAL_FEATURES = ['asa_class', 'procedure_type']
NUMERIC_FEATURES = [
    'age',
    'bmi',
    'surgery_duration_minutes',
    'estimated_blood_loss_ml',
    'intraoperative_event',
]


class FeatureEncoder:
    """
    Category-to-number mapping learned once from training data.

    Levels are sorted and the first level of each categorical feature is the
    reference level for dummy coding. Levels never seen in training are
    rejected with UnseenCategoryError rather than mapped to a bucket.
    """

    def __init__(self, categorical_features=None):
        self.categorical_features = list(categorical_features or CATEGORICAL_FEATURES)
        self.levels_ = None

    def fit(self, df):
        self.levels_ = {
            feature: sorted(pd.unique(df[feature]).tolist())
            for feature in self.categorical_features
        }
        return self

    def _check_levels(self, df):
        if self.levels_ is None:
            raise ModelNotFittedError("FeatureEncoder must be fitted before encoding")
        for feature, levels in self.levels_.items():
            unseen = set(pd.unique(df[feature]).tolist()) - set(levels)
            if unseen:
                raise UnseenCategoryError(feature, unseen)

    def design_matrix(self, df):
        """Numeric features plus reference-coded dummies, with a leading intercept"""
        self._check_levels(df)

        X = df[NUMERIC_FEATURES].astype(float)
        for feature, levels in self.levels_.items():
            for level in levels[1:]:
                X[f'{feature}[{level}]'] = (df[feature] == level).astype(float)

        return sm.add_constant(X, has_constant='add')

    def ordinal_matrix(self, df):
        """Numeric features plus one integer code per categorical feature"""
        self._check_levels(df)

        X = df[NUMERIC_FEATURES].astype(float)
        for feature, levels in self.levels_.items():
            codes = {level: code for code, level in enumerate(levels)}
            X[feature] = df[feature].map(codes).astype(int)
        return X

    @property
    def mapping(self):
        return {
            feature: {level: code for code, level in enumerate(levels)}
            for feature, levels in (self.levels_ or {}).items()
        }


class RiskModel(ABC):
    """
    Capability shared by every complication risk model.

    fit() trains on a cohort frame and returns the fitted model;
    predict_probability() scores a frame of cases and
    predict_case_probability() scores a single Case.
    """

    name = 'Risk Model'

    def __init__(self, random_state=config.RANDOM_SEED):
        self.random_state = random_state
        self.encoder = None

    @property
    def is_fitted(self):
        return self.encoder is not None

    @staticmethod
    def _validate_training_data(train):
        if len(train) == 0:
            raise DegenerateFitError("Cannot fit a model on an empty training set")

        y = train[OUTCOME_COLUMN].astype(int)
        if y.nunique() < 2:
            raise DegenerateFitError(
                f"Training outcome has a single class ({y.iloc[0]}); the model is undefined"
            )
        return y

    def fit(self, train):
        y = self._validate_training_data(train)
        encoder = FeatureEncoder().fit(train)

        print(f"\nFitting {self.name} on {len(train)} cases ({int(y.sum())} complications)...")
        self._fit(encoder, train, y)
        self.encoder = encoder
        return self

    def predict_probability(self, cases):
        if not self.is_fitted:
            raise ModelNotFittedError(f"{self.name} has not been fitted")
        probabilities = np.asarray(self._predict(cases), dtype=float)
        return np.clip(probabilities, 0.0, 1.0)

    def predict_case_probability(self, case):
        return float(self.predict_probability(frame_from_cases([case]))[0])

    def predict_class(self, cases, threshold=config.CLASSIFICATION_THRESHOLD):
        return (self.predict_probability(cases) > threshold).astype(int)

    @abstractmethod
    def _fit(self, encoder, train, y):
        pass

    @abstractmethod
    def _predict(self, cases):
        pass


class LogisticRiskModel(RiskModel):
    """Logit-link GLM over all features, with odds ratios for interpretation"""

    name = 'Logistic Regression'

    def __init__(self, random_state=config.RANDOM_SEED, confidence_level=config.CONFIDENCE_LEVEL):
        super().__init__(random_state=random_state)
        self.confidence_level = confidence_level
        self.result = None

    def _fit(self, encoder, train, y):
        X = encoder.design_matrix(train)
        rank = np.linalg.matrix_rank(X.to_numpy())
        if rank < X.shape[1]:
            constant = [column for column in X.columns[1:] if X[column].nunique() < 2]
            raise DegenerateFitError(
                f"Logistic design matrix is rank deficient (rank {rank} < {X.shape[1]} columns); "
                f"constant columns: {constant or 'none'}"
            )

        try:
            result = sm.Logit(y.to_numpy(), X).fit(disp=False, maxiter=200)
        except np.linalg.LinAlgError as exc:
            raise DegenerateFitError(f"Logistic fit failed on a singular design matrix: {exc}") from exc

        if not result.mle_retvals.get('converged', False):
            raise DegenerateFitError("Logistic fit did not converge; coefficients would be unreliable")
        if not np.isfinite(result.bse).all():
            raise DegenerateFitError("Logistic fit produced non-finite standard errors")

        self.result = result
        print(f"Converged: {self.result.mle_retvals.get('converged')}")
        print(f"Pseudo R-squared: {self.result.prsquared:.3f}")

    def _predict(self, cases):
        return self.result.predict(self.encoder.design_matrix(cases))

    def coefficient_table(self):
        """One row per coefficient, intercept included"""
        if self.result is None:
            raise ModelNotFittedError(f"{self.name} has not been fitted")

        alpha = 1 - self.confidence_level
        ci = self.result.conf_int(alpha=alpha)
        table = pd.DataFrame({
            'term': self.result.params.index,
            'coefficient': self.result.params.to_numpy(),
            'std_error': self.result.bse.to_numpy(),
            'p_value': self.result.pvalues.to_numpy(),
            'odds_ratio': np.exp(self.result.params.to_numpy()),
            'ci_lower': np.exp(ci.iloc[:, 0].to_numpy()),
            'ci_upper': np.exp(ci.iloc[:, 1].to_numpy()),
        })
        return table.reset_index(drop=True)

    def odds_ratios(self):
        """Odds ratio and two-sided confidence interval per non-intercept coefficient"""
        table = self.coefficient_table()
        return table[table['term'] != 'const'].reset_index(drop=True)


class RandomForestRiskModel(RiskModel):
    """Ensemble of decision trees over integer-coded features"""

    name = 'Random Forest'

    def __init__(self, random_state=config.RANDOM_SEED, n_estimators=config.N_ESTIMATORS):
        super().__init__(random_state=random_state)
        self.n_estimators = n_estimators
        self.model = None
        self.feature_columns = None

    def _fit(self, encoder, train, y):
        X = encoder.ordinal_matrix(train)
        self.feature_columns = list(X.columns)

        self.model = RandomForestClassifier(
            n_estimators=self.n_estimators,
            random_state=self.random_state,
            n_jobs=1,
        )
        self.model.fit(X, y)
        print(f"Trained {self.n_estimators} trees, training accuracy: {self.model.score(X, y):.3f}")

    def _predict(self, cases):
        X = self.encoder.ordinal_matrix(cases)
        positive_column = list(self.model.classes_).index(1)
        return self.model.predict_proba(X)[:, positive_column]

    def feature_importances(self):
        if self.model is None:
            raise ModelNotFittedError(f"{self.name} has not been fitted")

        return pd.DataFrame({
            'feature': self.feature_columns,
            'importance': self.model.feature_importances_
        }).sort_values('importance', ascending=False).reset_index(drop=True)
