"""Time Tracker package.

This package is organized by feature modules (time_entries, tasks, users, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
