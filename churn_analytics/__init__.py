"""Churn Analytics — membership churn and retention analytics."""

__version__ = "1.0.0"
