"""API services.

This package contains the services the API layer owns itself; the
notification services live in ``notifier.src.services``.
"""
