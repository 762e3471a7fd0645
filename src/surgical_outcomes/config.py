"""
Configuration settings for the surgical outcomes risk report
"""

from pathlib import Path

# Base paths, resolved against the working directory
DATA_PATH = Path("data") / "simulated_surgical_data.csv"
RESULTS_DIR = Path("results") / "surgical_report"
REPORT_FILENAME = "surgical_outcomes_report.html"
LOG_FILENAME = "experiment_log.txt"

# Reproducibility
RANDOM_SEED = 38
N_CASES = 1000

# Cohort simulation parameters
AGE_MEAN, AGE_SD = 60, 15
AGE_RANGE = (18, 90)

BMI_MEAN, BMI_SD = 27, 5
BMI_RANGE = (15, 50)

ASA_CLASSES = [1, 2, 3, 4, 5]
ASA_PROBABILITIES = [0.10, 0.30, 0.40, 0.15, 0.05]

PROCEDURE_TYPES = ["Lap Chole", "Colectomy", "Hernia Repair", "Appendectomy", "Gastrectomy"]
PROCEDURE_PROBABILITIES = [0.30, 0.25, 0.20, 0.15, 0.10]

DURATION_MEANLOG, DURATION_SDLOG = 90, 0.4      # meanlog is ln(90)
BLOOD_LOSS_MEANLOG, BLOOD_LOSS_SDLOG = 100, 0.7  # meanlog is ln(100)
BLOOD_LOSS_CAP = 2000

INTRAOP_EVENT_RATE = 0.15

# Ground-truth risk function: intercept plus (coefficient, centre) per feature
RISK_INTERCEPT = -3.5
RISK_COEFFICIENTS = {
    'age': (0.03, 60),
    'bmi': (0.05, 27),
    'asa_class': (0.4, 2),
    'surgery_duration_minutes': (0.005, 90),
    'estimated_blood_loss_ml': (0.002, 100),
    'intraoperative_event': (1.0, 0),
}

# Modelling
TRAIN_FRACTION = 0.8
N_ESTIMATORS = 700
CLASSIFICATION_THRESHOLD = 0.5
CONFIDENCE_LEVEL = 0.95

# Visualization settings
FIGURE_DPI = 300
