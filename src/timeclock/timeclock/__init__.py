"""Timeclock package.

Feature modules (punches, sessions, kpi, punch_clock, timesheets, ...) keep the
business rules in pure services; Flask controllers and MySQL repositories are thin
adapters wired together in ``container.py``.
"""
