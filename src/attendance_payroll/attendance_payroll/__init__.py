"""Attendance lifecycle and payroll engine.

Organized by feature modules (attendance, corrections, payroll, jobs, ...)
with service/repository layers, in-process batch jobs and a thin Flask
surface for manual job triggers.
"""
