"""Pydantic Schemas — request/response models at the API boundary."""
