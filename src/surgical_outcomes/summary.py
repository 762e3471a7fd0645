"""
Descriptive statistics for a simulated surgical cohort
"""

import numpy as np
import pandas as pd
from scipy import stats

from .data_generator import OUTCOME_COLUMN

CONTINUOUS_FEATURES = [
    ('age', 'Age (years)'),
    ('bmi', 'BMI (kg/m²)'),
    ('surgery_duration_minutes', 'Surgery duration (min)'),
    ('estimated_blood_loss_ml', 'Estimated blood loss (mL)'),
]

CATEGORICAL_FEATURES = [
    ('asa_class', 'ASA class'),
    ('procedure_type', 'Procedure type'),
    ('intraoperative_event', 'Intraoperative event'),
]

OUTCOME_LABELS = {0: 'No complication', 1: 'Complication'}


class CohortSummarizer:
    """Summary tables of a cohort, overall and by 30-day complication status"""

    def __init__(self, df):
        self.df = df

    def _groups(self):
        return {
            label: self.df[self.df[OUTCOME_COLUMN] == code]
            for code, label in OUTCOME_LABELS.items()
        }

    def overview(self):
        n_cases = len(self.df)
        n_events = int(self.df[OUTCOME_COLUMN].sum())
        overview = {
            'cases': n_cases,
            'complications': n_events,
            'complication_rate': n_events / n_cases if n_cases else np.nan,
        }
        print(f"Cases: {n_cases}, complications: {n_events} ({overview['complication_rate']:.2%})")
        return overview

    def continuous_summary(self):
        """Mean (SD) and median [IQR] per feature, with Welch t-test and Mann-Whitney U p-values"""
        print("\n--- Continuous Features by Outcome ---")
        groups = self._groups()
        rows = []

        for column, label in CONTINUOUS_FEATURES:
            row = {'feature': label}
            for group_label, group in [('Overall', self.df)] + list(groups.items()):
                values = group[column]
                row[f'{group_label} mean (SD)'] = f"{values.mean():.1f} ({values.std():.1f})"
                row[f'{group_label} median [IQR]'] = (
                    f"{values.median():.1f} [{values.quantile(0.25):.1f}, {values.quantile(0.75):.1f}]"
                )

            negatives, positives = (group[column].dropna() for group in groups.values())
            if len(negatives) > 1 and len(positives) > 1:
                row['t-test p'] = stats.ttest_ind(positives, negatives, equal_var=False).pvalue
                row['Mann-Whitney p'] = stats.mannwhitneyu(positives, negatives, alternative='two-sided').pvalue
            else:
                row['t-test p'] = np.nan
                row['Mann-Whitney p'] = np.nan
            rows.append(row)

        table = pd.DataFrame(rows)
        print(table[['feature', 't-test p', 'Mann-Whitney p']])
        return table

    def categorical_summary(self):
        """Counts and column percentages per level by outcome, with a chi-square p-value per feature"""
        print("\n--- Categorical Features by Outcome ---")
        rows = []

        for column, label in CATEGORICAL_FEATURES:
            crosstab = pd.crosstab(self.df[column], self.df[OUTCOME_COLUMN])
            crosstab = crosstab.reindex(columns=list(OUTCOME_LABELS), fill_value=0)

            if crosstab.shape[0] > 1 and (crosstab.sum(axis=0) > 0).all():
                chi2 = stats.chi2_contingency(crosstab)
                p_value = chi2[1]
            else:
                p_value = np.nan
            print(f"{label} (chi-square): p={p_value:.4f}")

            column_totals = crosstab.sum(axis=0)
            for level, counts in crosstab.iterrows():
                row = {'feature': label, 'level': level, 'Overall': f"{int(counts.sum())} ({counts.sum() / len(self.df):.1%})"}
                for code, outcome_label in OUTCOME_LABELS.items():
                    share = counts[code] / column_totals[code] if column_totals[code] else np.nan
                    row[outcome_label] = f"{int(counts[code])} ({share:.1%})"
                row['chi-square p'] = p_value
                rows.append(row)

        return pd.DataFrame(rows)

    def complication_rate_by(self, column):
        """Observed complication rate and case count per level of a feature"""
        grouped = self.df.groupby(column)[OUTCOME_COLUMN]
        return pd.DataFrame({
            'cases': grouped.size(),
            'complications': grouped.sum(),
            'complication_rate': grouped.mean(),
        }).reset_index()
