"""
FastAPI alert service.

Provides REST API for the alert engine:
- GET /alerts - Merged backend and generated alerts with stats
- POST /alerts/check - On-demand alert check
- POST /alerts/{id}/<action> - Lifecycle actions
- GET/PUT /admin/config - Alert configuration
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]
