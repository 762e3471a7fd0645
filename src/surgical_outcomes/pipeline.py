"""
Main workflow for the surgical outcomes risk report

This module runs every analysis step in a single pass:
1. Cohort simulation and persistence
2. Descriptive summary of the cohort
3. Stratified train/test split
4. Logistic regression and random forest fitting
5. Holdout evaluation (ROC, AUC, confusion matrices)
6. Visualizations and HTML report

Usage:
    surgical-report --seed 38 --results-dir results/surgical_report
"""

import argparse
import os
import sys
from datetime import datetime

from . import config
from .data_generator import CohortGenerator, load_cohort, save_cohort
from .evaluator import Evaluator
from .models import LogisticRiskModel, RandomForestRiskModel
from .partitioner import StratifiedPartitioner
from .report import ReportBuilder
from .summary import CohortSummarizer
from .visualizer import Visualizer


class Tee:
    """Helper class to redirect output to both console and file"""
    def __init__(self, *files):
        self.files = files
    def write(self, obj):
        for f in self.files:
            f.write(obj)
            f.flush()
    def flush(self):
        for f in self.files:
            f.flush()


def print_step(title):
    print("\n" + "="*50)
    print(title)
    print("="*50)


def run_analysis(results_dir=config.RESULTS_DIR, data_path=config.DATA_PATH,
                 n_cases=config.N_CASES, random_state=config.RANDOM_SEED,
                 n_estimators=config.N_ESTIMATORS):
    """Run the full analysis and return its artifacts keyed by name"""
    os.makedirs(results_dir, exist_ok=True)

    # =====================================
    # STEP 1: COHORT SIMULATION
    # =====================================
    print_step("STEP 1: COHORT SIMULATION")

    generated = CohortGenerator(n_cases=n_cases, random_state=random_state).generate()
    save_cohort(generated, data_path)
    cohort = load_cohort(data_path)

    # =====================================
    # STEP 2: COHORT SUMMARY
    # =====================================
    print_step("STEP 2: COHORT SUMMARY")

    summarizer = CohortSummarizer(cohort)
    overview = summarizer.overview()
    continuous_table = summarizer.continuous_summary()
    categorical_table = summarizer.categorical_summary()

    # =====================================
    # STEP 3: TRAIN/TEST SPLIT
    # =====================================
    print_step("STEP 3: TRAIN/TEST SPLIT")

    partition = StratifiedPartitioner(random_state=random_state).split(cohort)

    # =====================================
    # STEP 4: MODEL FITTING
    # =====================================
    print_step("STEP 4: MODEL FITTING")

    logistic = LogisticRiskModel(random_state=random_state).fit(partition.train)
    forest = RandomForestRiskModel(random_state=random_state, n_estimators=n_estimators).fit(partition.train)

    odds_ratios = logistic.odds_ratios()
    print("\nOdds Ratios:")
    print(odds_ratios[['term', 'odds_ratio', 'ci_lower', 'ci_upper', 'p_value']])

    feature_importance = forest.feature_importances()
    print("\nFeature Importance:")
    print(feature_importance)

    # =====================================
    # STEP 5: HOLDOUT EVALUATION
    # =====================================
    print_step("STEP 5: HOLDOUT EVALUATION")

    evaluator = Evaluator()
    results = [evaluator.evaluate(model, partition.test) for model in (logistic, forest)]
    comparison = evaluator.compare(results)

    odds_ratios.to_csv(os.path.join(results_dir, "odds_ratios.csv"), index=False)
    feature_importance.to_csv(os.path.join(results_dir, "feature_importance.csv"), index=False)
    comparison.to_csv(os.path.join(results_dir, "model_metrics.csv"), index=False)

    # =====================================
    # STEP 6: VISUALIZATIONS & REPORT
    # =====================================
    print_step("STEP 6: VISUALIZATIONS & REPORT")

    visualizer = Visualizer(results_dir)
    figures = {
        'exploratory': visualizer.plot_exploratory(cohort),
        'odds_ratios': visualizer.plot_odds_ratios(odds_ratios),
        'roc_curves': visualizer.plot_roc_curves(results),
        'feature_importance': visualizer.plot_feature_importance(feature_importance),
    }
    for result in results:
        figures[f'confusion_{result.model_name}'] = visualizer.plot_confusion_matrix(result)

    report_path = os.path.join(results_dir, config.REPORT_FILENAME)
    build_report(
        report_path, overview, continuous_table, categorical_table, partition,
        odds_ratios, feature_importance, results, comparison, figures, random_state,
    )

    return {
        'cohort': cohort,
        'partition': partition,
        'models': {'logistic': logistic, 'random_forest': forest},
        'results': results,
        'comparison': comparison,
        'figures': figures,
        'report_path': report_path,
    }


def build_report(report_path, overview, continuous_table, categorical_table, partition,
                 odds_ratios, feature_importance, results, comparison, figures, random_state):
    report_dir = os.path.dirname(report_path)
    report = ReportBuilder()

    report.add_section("Simulated Cohort")
    report.add_paragraph(
        f"{overview['cases']} synthetic surgical cases were simulated with seed {random_state}; "
        f"{overview['complications']} ({overview['complication_rate']:.1%}) had a 30-day complication."
    )
    report.add_table(continuous_table, caption="Continuous features by outcome")
    report.add_table(categorical_table, caption="Categorical features by outcome")
    report.add_figure(figures['exploratory'], "Exploratory analysis", relative_to=report_dir)

    report.add_section("Train/Test Split")
    report.add_paragraph(
        f"Training set: {len(partition.train)} cases ({partition.train_prevalence:.1%} complications). "
        f"Test set: {len(partition.test)} cases ({partition.test_prevalence:.1%} complications). "
        f"{'Stratified' if partition.stratified else 'Unstratified'} on complication status."
    )

    report.add_section("Logistic Regression")
    report.add_table(odds_ratios, caption="Odds ratios with 95% confidence intervals")
    report.add_figure(figures['odds_ratios'], "Odds ratio plot", relative_to=report_dir)

    report.add_section("Random Forest")
    report.add_table(feature_importance, caption="Feature importance")
    report.add_figure(figures['feature_importance'], "Feature importance", relative_to=report_dir)

    report.add_section("Model Performance")
    report.add_figure(figures['roc_curves'], "ROC curves", relative_to=report_dir)
    report.add_table(comparison, caption="Holdout metrics")
    for result in results:
        report.add_table(result.confusion.as_table(), caption=f"Confusion matrix - {result.model_name}", index=True)
        report.add_figure(figures[f'confusion_{result.model_name}'], relative_to=report_dir)

    return report.write(report_path)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Simulate a surgical cohort and report complication risk models")
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED, help="random seed for every stochastic step")
    parser.add_argument("--n-cases", type=int, default=config.N_CASES, help="number of simulated cases")
    parser.add_argument("--results-dir", default=str(config.RESULTS_DIR), help="directory for plots, tables and the report")
    parser.add_argument("--data-path", default=str(config.DATA_PATH), help="where to write the simulated dataset")
    return parser.parse_args(argv)


def main(argv=None):
    """Main experiment workflow"""
    args = parse_args(argv)

    print("="*60)
    print("SURGICAL OUTCOMES RISK REPORT")
    print("="*60)
    print(f"Started at: {datetime.now()}")

    results_dir = args.results_dir
    os.makedirs(results_dir, exist_ok=True)

    # Set up logging to file
    log_file = os.path.join(results_dir, config.LOG_FILENAME)

    with open(log_file, "w", encoding='utf-8') as f:
        original_stdout = sys.stdout
        sys.stdout = Tee(sys.stdout, f)

        try:
            artifacts = run_analysis(
                results_dir=results_dir,
                data_path=args.data_path,
                n_cases=args.n_cases,
                random_state=args.seed,
            )

            print_step("SUMMARY")
            print(artifacts['comparison'][['model', 'auc', 'accuracy', 'sensitivity', 'specificity']])
            print(f"\nAll results saved to: {results_dir}/")

        finally:
            sys.stdout = original_stdout

    print(f"\nAnalysis completed successfully!")
    print(f"Report: {artifacts['report_path']}")
    print(f"Log file: {log_file}")
    print(f"Completed at: {datetime.now()}")


if __name__ == "__main__":
    main()
