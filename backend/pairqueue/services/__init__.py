"""Services Layer — stores, the match trigger handler, delivery and the reaper.

Invariants:
    - Stores never commit; the transaction owner (runner, route, reaper) does
    - The match handler is the only writer of matches and sessions

Design Decisions:
    - One file per concern, wired together in runtime.py (no auto-discovery)
"""
