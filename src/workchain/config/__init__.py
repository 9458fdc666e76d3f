"""Configuration layer — settings discovery and logging setup.

This layer depends only on stdlib, pydantic-settings and structlog.
It must never import from core.
"""
