"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - All external HTTP calls wrapped with retry/timeout/error mapping (http_client.py)
    - Database access goes through DatabaseSessionManager

Design Decisions:
    - Resilient wrappers over raw clients: routes and services never see httpx errors
"""
