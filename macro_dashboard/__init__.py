"""Macro indicator dashboard with a prediction journal."""
