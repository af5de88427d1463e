"""
Domain layer containing core business logic and domain services.

Submodules:
- rooms: Exam room lifecycle, membership, connection registry and incident logging.
- utils: Domain-specific utilities (e.g., ID generation).
"""
