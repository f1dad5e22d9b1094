"""Pydantic models shared by the db, engine and service layers."""
