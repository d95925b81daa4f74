"""Domain layer — zones, model, history, validation, and backup codec.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
