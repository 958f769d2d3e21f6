"""Services Layer — verification pipeline stages wired around the pure core.

Invariants:
    - Each stage recovers its own collaborator failures (only /verify surfaces errors)
    - Services receive collaborators by constructor, never import singletons

Design Decisions:
    - One file per pipeline stage for locality
    - OracleContext owns every stage and all shared mutable state
"""
