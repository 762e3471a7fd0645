import pytest

from surgical_outcomes.summary import CohortSummarizer


@pytest.fixture(scope="module")
def summarizer(cohort):
    return CohortSummarizer(cohort)


def test_overview_counts(summarizer, cohort):
    overview = summarizer.overview()
    assert overview['cases'] == 1000
    assert overview['complications'] == int(cohort['complication_30d'].sum())
    assert overview['complication_rate'] == pytest.approx(cohort['complication_30d'].mean())


def test_continuous_summary_has_tests_per_feature(summarizer):
    table = summarizer.continuous_summary()
    assert len(table) == 4
    assert table['t-test p'].between(0, 1).all()
    assert table['Mann-Whitney p'].between(0, 1).all()


def test_age_differs_by_outcome(summarizer):
    table = summarizer.continuous_summary().set_index('feature')
    assert table.loc['Age (years)', 'Mann-Whitney p'] < 0.05


def test_categorical_summary_lists_every_level(summarizer, cohort):
    table = summarizer.categorical_summary()
    expected_rows = (cohort['asa_class'].nunique()
                     + cohort['procedure_type'].nunique()
                     + cohort['intraoperative_event'].nunique())
    assert len(table) == expected_rows
    assert table['chi-square p'].between(0, 1).all()


def test_complication_rate_by_level(summarizer, cohort):
    rates = summarizer.complication_rate_by('asa_class')
    assert rates['cases'].sum() == len(cohort)
    assert rates['complications'].sum() == cohort['complication_30d'].sum()
    assert rates['complication_rate'].between(0, 1).all()
