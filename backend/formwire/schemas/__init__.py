"""Pydantic request/response models for the JSON routes."""
