"""Churn, retention and membership-journey analytics over canonical records."""
