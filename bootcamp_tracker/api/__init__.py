"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return JSON, except the EventSub challenge echo (text/plain)

Design Decisions:
    - Thin routes delegate to services; auth and client wiring live in dependencies.py
"""
