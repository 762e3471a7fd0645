import numpy as np
import pytest

from surgical_outcomes.data_generator import cases_from_frame
from surgical_outcomes.exceptions import DegenerateFitError, ModelNotFittedError, UnseenCategoryError
from surgical_outcomes.models import (
    FeatureEncoder,
    LogisticRiskModel,
    NUMERIC_FEATURES,
    RandomForestRiskModel,
    RiskModel,
)


def test_encoder_learns_sorted_levels(partition):
    encoder = FeatureEncoder().fit(partition.train)
    assert encoder.levels_['asa_class'] == [1, 2, 3, 4, 5]
    assert encoder.levels_['procedure_type'] == sorted(encoder.levels_['procedure_type'])
    assert encoder.mapping['asa_class'][1] == 0


def test_design_matrix_drops_reference_levels(partition):
    encoder = FeatureEncoder().fit(partition.train)
    X = encoder.design_matrix(partition.test)

    assert X.columns[0] == 'const'
    assert 'asa_class[1]' not in X.columns
    assert 'asa_class[2]' in X.columns
    assert len(X.columns) == 1 + len(NUMERIC_FEATURES) + 4 + 4


def test_encoder_rejects_unseen_levels(cohort):
    train = cohort[cohort['procedure_type'] != 'Gastrectomy']
    unseen = cohort[cohort['procedure_type'] == 'Gastrectomy']
    encoder = FeatureEncoder().fit(train)

    with pytest.raises(UnseenCategoryError, match='Gastrectomy') as excinfo:
        encoder.ordinal_matrix(unseen)
    assert excinfo.value.feature == 'procedure_type'


@pytest.mark.parametrize("model_class", [LogisticRiskModel, RandomForestRiskModel])
def test_models_reject_unseen_levels_at_prediction(cohort, model_class):
    train = cohort[cohort['procedure_type'] != 'Gastrectomy']
    unseen = cohort[cohort['procedure_type'] == 'Gastrectomy']
    model = model_class(random_state=1)
    if isinstance(model, RandomForestRiskModel):
        model.n_estimators = 20
    model.fit(train)

    with pytest.raises(UnseenCategoryError):
        model.predict_probability(unseen)


def test_logistic_reports_one_odds_ratio_per_coefficient(logistic_model, partition):
    odds_ratios = logistic_model.odds_ratios()
    design = logistic_model.encoder.design_matrix(partition.train)

    assert len(odds_ratios) == design.shape[1] - 1
    assert 'const' not in set(odds_ratios['term'])
    assert odds_ratios['term'].is_unique


def test_odds_ratios_are_exponentiated_coefficients(logistic_model):
    table = logistic_model.odds_ratios()
    assert np.allclose(table['odds_ratio'], np.exp(table['coefficient']))
    assert (table['ci_lower'] <= table['odds_ratio']).all()
    assert (table['odds_ratio'] <= table['ci_upper']).all()


def test_coefficient_table_includes_intercept(logistic_model):
    table = logistic_model.coefficient_table()
    assert table['term'].iloc[0] == 'const'
    assert len(table) == len(logistic_model.odds_ratios()) + 1


def test_logistic_recovers_intraoperative_event_effect(logistic_model):
    table = logistic_model.odds_ratios().set_index('term')
    assert table.loc['intraoperative_event', 'odds_ratio'] > 1


@pytest.mark.parametrize("model_class", [LogisticRiskModel, RandomForestRiskModel])
def test_single_class_training_set_is_degenerate(cohort, model_class):
    negatives = cohort[cohort['complication_30d'] == 0]
    with pytest.raises(DegenerateFitError):
        model_class().fit(negatives)


@pytest.mark.parametrize("model_class", [LogisticRiskModel, RandomForestRiskModel])
def test_empty_training_set_is_degenerate(cohort, model_class):
    with pytest.raises(DegenerateFitError):
        model_class().fit(cohort.iloc[0:0])


@pytest.mark.parametrize("model_class", [LogisticRiskModel, RandomForestRiskModel])
def test_prediction_requires_fitting(partition, model_class):
    model = model_class()
    assert not model.is_fitted
    with pytest.raises(ModelNotFittedError):
        model.predict_probability(partition.test)


def test_failed_fit_leaves_model_unfitted(cohort):
    model = LogisticRiskModel()
    with pytest.raises(DegenerateFitError):
        model.fit(cohort[cohort['complication_30d'] == 1])
    assert not model.is_fitted


def test_constant_feature_makes_logistic_fit_degenerate(cohort):
    train = cohort.head(300).copy()
    train['intraoperative_event'] = 1
    assert train['complication_30d'].nunique() == 2

    model = LogisticRiskModel()
    with pytest.raises(DegenerateFitError, match="rank deficient"):
        model.fit(train)
    assert not model.is_fitted
    assert model.result is None


def test_fitted_logistic_has_finite_standard_errors(logistic_model):
    table = logistic_model.coefficient_table()
    assert np.isfinite(table['std_error']).all()
    assert np.isfinite(table[['ci_lower', 'ci_upper']].to_numpy()).all()


@pytest.mark.parametrize("fixture_name", ["logistic_model", "forest_model"])
def test_probabilities_lie_in_unit_interval(request, partition, fixture_name):
    model = request.getfixturevalue(fixture_name)
    probabilities = model.predict_probability(partition.test)

    assert isinstance(model, RiskModel)
    assert probabilities.shape == (len(partition.test),)
    assert ((probabilities >= 0) & (probabilities <= 1)).all()


@pytest.mark.parametrize("fixture_name", ["logistic_model", "forest_model"])
def test_single_case_matches_batch_prediction(request, partition, fixture_name):
    model = request.getfixturevalue(fixture_name)
    case = cases_from_frame(partition.test.head(1))[0]

    assert model.predict_case_probability(case) == pytest.approx(
        model.predict_probability(partition.test.head(1))[0]
    )


def test_predict_class_uses_strict_threshold(logistic_model, partition):
    probabilities = logistic_model.predict_probability(partition.test)
    classes = logistic_model.predict_class(partition.test, threshold=0.5)
    assert np.array_equal(classes, (probabilities > 0.5).astype(int))


def test_forest_is_deterministic_under_fixed_seed(partition):
    first = RandomForestRiskModel(random_state=5, n_estimators=30).fit(partition.train)
    second = RandomForestRiskModel(random_state=5, n_estimators=30).fit(partition.train)
    assert np.array_equal(
        first.predict_probability(partition.test),
        second.predict_probability(partition.test),
    )


def test_forest_feature_importances(forest_model):
    importances = forest_model.feature_importances()

    assert set(importances['feature']) == set(NUMERIC_FEATURES) | {'asa_class', 'procedure_type'}
    assert importances['importance'].sum() == pytest.approx(1.0)
    assert importances['importance'].is_monotonic_decreasing


def test_default_forest_size():
    assert RandomForestRiskModel().n_estimators == 700
