"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import admin, bookings, classes, credits, functions, health, profiles

__all__ = ["admin", "bookings", "classes", "credits", "functions", "health", "profiles"]
