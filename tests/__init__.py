"""Trench API test suite."""
