"""
FieldSync Backend: Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    - Rate Limit first: abusive clients are rejected before any work
    - Request ID before Logging: every access line carries the id
"""
