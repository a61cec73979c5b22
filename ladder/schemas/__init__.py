"""Schemas — Pydantic models for the HTTP intake boundary."""
