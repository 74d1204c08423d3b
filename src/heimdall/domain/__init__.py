"""Domain layer — value trees, schemas, section models, and rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
