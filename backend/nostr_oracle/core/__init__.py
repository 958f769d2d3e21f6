"""Core Layer — pure verification logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Time is always passed in (now / clock values), never read inside core

Design Decisions:
    - Functional core separated from imperative shell: scoring, extraction patterns,
      admission and aggregation are testable without fakes
"""
