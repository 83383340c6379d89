"""Attendance reconciliation package.

Feature modules (events, dedup, shifts, attendance, penalties, reporting, runs)
follow the same layering: frozen dataclass models, Protocol repositories with
MySQL implementations, and services that hold the business rules.
"""
