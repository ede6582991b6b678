"""Campus Attendance package.

This package is organized by feature modules (schedules, sessions, attendance,
leave requests) with a thin Flask controller layer and service/repository
layers underneath.
"""
