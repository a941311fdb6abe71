"""Attendance & excuse reconciliation package.

Organized by feature modules (school_days, excuses, attendance, audit, ...)
with a thin Flask controller layer on top of service/repository layers.
"""
