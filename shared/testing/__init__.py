"""Helpers shared by the pytest suite."""
