"""Aptitude Compass: adaptive questionnaire scoring and weight calibration."""

__version__ = "1.0.0"
