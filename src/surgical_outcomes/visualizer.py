"""
Visualization utilities for the surgical outcomes report
"""

import os

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from . import config
from .data_generator import OUTCOME_COLUMN
from .evaluator import UNDEFINED
from .summary import OUTCOME_LABELS


class Visualizer:
    """Exploratory and model-performance plots saved as PNG files"""

    def __init__(self, results_dir=config.RESULTS_DIR, dpi=config.FIGURE_DPI):
        self.results_dir = results_dir
        self.dpi = dpi
        os.makedirs(self.results_dir, exist_ok=True)
        # Set style
        plt.style.use('default')
        sns.set_palette("husl")

    def _save(self, filename):
        path = os.path.join(self.results_dir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=self.dpi, bbox_inches='tight')
        plt.close()
        print(f"Saved {filename}")
        return path

    def plot_exploratory(self, df, filename='exploratory_analysis.png'):
        """Feature distributions and complication rates across the cohort"""
        plot_df = df.assign(outcome=df[OUTCOME_COLUMN].map(OUTCOME_LABELS))
        hue_order = list(OUTCOME_LABELS.values())

        fig, axes = plt.subplots(2, 4, figsize=(24, 10))
        axes = axes.ravel()

        # 1-2. Histograms by outcome
        for ax, (column, title) in zip(axes[:2], [('age', 'Age (years)'), ('bmi', 'BMI (kg/m²)')]):
            sns.histplot(data=plot_df, x=column, hue='outcome', hue_order=hue_order,
                         bins=20, stat='density', common_norm=False, alpha=0.6, ax=ax)
            ax.set_xlabel(title)
            ax.set_title(f'{title.split(" (")[0]} Distribution by Outcome')

        # 3-4. Box plots for skewed operative variables
        box_vars = [
            ('surgery_duration_minutes', 'Surgery Duration (min)'),
            ('estimated_blood_loss_ml', 'Estimated Blood Loss (mL)'),
        ]
        for ax, (column, title) in zip(axes[2:4], box_vars):
            sns.boxplot(data=plot_df, x='outcome', y=column, order=hue_order, ax=ax)
            ax.set_xlabel('')
            ax.set_ylabel(title)
            ax.set_title(f'{title} by Outcome')

        # 5-7. Observed complication rate per level
        rate_vars = [
            ('asa_class', 'ASA Class'),
            ('procedure_type', 'Procedure Type'),
            ('intraoperative_event', 'Intraoperative Event'),
        ]
        for ax, (column, title) in zip(axes[4:7], rate_vars):
            rates = df.groupby(column)[OUTCOME_COLUMN].mean() * 100
            rates.plot(kind='bar', ax=ax, color='lightcoral')
            ax.set_xlabel(title)
            ax.set_ylabel('Complication Rate (%)')
            ax.set_title(f'Complication Rate by {title}')
            ax.tick_params(axis='x', rotation=45)

        # 8. Correlation heatmap
        numeric_cols = ['age', 'bmi', 'asa_class', 'surgery_duration_minutes',
                        'estimated_blood_loss_ml', 'intraoperative_event', OUTCOME_COLUMN]
        sns.heatmap(df[numeric_cols].corr(), annot=True, cmap='coolwarm', center=0,
                    ax=axes[7], square=True, fmt='.2f', annot_kws={'size': 7})
        axes[7].set_title('Correlation Matrix')

        return self._save(filename)

    def plot_odds_ratios(self, odds_ratio_table, filename='odds_ratios.png'):
        """Forest plot of logistic-regression odds ratios with confidence intervals"""
        table = odds_ratio_table.iloc[::-1].reset_index(drop=True)
        positions = np.arange(len(table))

        plt.figure(figsize=(10, 0.5 * len(table) + 2))
        plt.errorbar(
            table['odds_ratio'], positions,
            xerr=[table['odds_ratio'] - table['ci_lower'], table['ci_upper'] - table['odds_ratio']],
            fmt='o', color='steelblue', ecolor='gray', capsize=3,
        )
        plt.axvline(1.0, color='red', linestyle='--', linewidth=1)
        plt.yticks(positions, table['term'])
        plt.xscale('log')
        plt.xlabel('Odds Ratio (log scale, 95% CI)')
        plt.title('Logistic Regression Odds Ratios for 30-Day Complication')
        plt.grid(True, axis='x', alpha=0.3)

        return self._save(filename)

    def plot_roc_curves(self, results, filename='roc_curves.png'):
        """ROC curves of all evaluated models on one axis"""
        plt.figure(figsize=(8, 7))

        for result in results:
            if len(result.roc) == 0:
                continue
            plt.plot(result.roc.fpr, result.roc.tpr, linewidth=2,
                     label=f'{result.model_name} (AUC = {result.auc:.3f})')

        plt.plot([0, 1], [0, 1], color='gray', linestyle='--', label='Chance')
        plt.xlim(0, 1)
        plt.ylim(0, 1.02)
        plt.xlabel('False Positive Rate (1 - Specificity)')
        plt.ylabel('True Positive Rate (Sensitivity)')
        plt.title('ROC Curves on Holdout Set')
        plt.legend(loc='lower right')
        plt.grid(True, alpha=0.3)

        return self._save(filename)

    def plot_confusion_matrix(self, result, filename=None):
        """Confusion matrix heatmap for one evaluated model"""
        if filename is None:
            filename = f"confusion_matrix_{result.model_name.lower().replace(' ', '_')}.png"

        plt.figure(figsize=(7, 5))
        sns.heatmap(result.confusion.as_table(), annot=True, fmt='d', cmap='Blues', cbar=False)
        accuracy = result.metrics.get('accuracy', UNDEFINED)
        plt.title(f'Confusion Matrix - {result.model_name} (accuracy {accuracy:.3f})')

        return self._save(filename)

    def plot_feature_importance(self, feature_importance_df, filename='feature_importance.png'):
        """Random forest feature importance bar chart"""
        plt.figure(figsize=(10, 6))

        feature_importance_df = feature_importance_df.sort_values('importance', ascending=True)

        plt.barh(feature_importance_df['feature'], feature_importance_df['importance'])
        plt.xlabel('Feature Importance (mean decrease in impurity)')
        plt.title('Random Forest Feature Importance')

        return self._save(filename)
