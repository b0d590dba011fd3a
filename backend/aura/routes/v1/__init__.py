# backend/aura/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from aura.routes.v1 import admin_verification, auth

__all__ = ["admin_verification", "auth"]
