"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - All external calls wrapped with timeout/error mapping
    - Collaborator failures surface as OracleError subclasses (core/errors.py)
"""
