"""Pydantic schemas for appointment records and visit history."""
