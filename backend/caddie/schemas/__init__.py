"""Pydantic request/response models, grouped by service."""
