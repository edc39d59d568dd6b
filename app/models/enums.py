"""
Database Enums

Python Enums for the text-valued columns of the hosted database.
"""

import enum


class UserRole(str, enum.Enum):
    """Profile role enumeration."""
    STUDENT = "student"
    ADMIN = "admin"
    TEAM = "team"
    INSTRUCTOR = "instructor"
