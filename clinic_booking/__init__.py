"""Clinic booking service: doctor slot availability and conflict-checked booking."""
