"""Pydantic Schemas — request validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (HTTP bodies)
    - Field aliases keep the camelCase wire names used by the dashboard
"""
