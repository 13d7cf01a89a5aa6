"""
Clinic Appointment System

A FastAPI backend where patients book appointments with doctors, guarded by
role-scoped bearer tokens and a per-doctor booking conflict check.
"""

__version__ = "1.0.0"
