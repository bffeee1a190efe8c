"""Core Layer — pure matching rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, db/ or models/
    - All functions are pure and deterministic (randomness is injected)

Design Decisions:
    - Functional core separated from imperative shell: the match transaction
      lives in services/, the rules it enforces live here
"""
