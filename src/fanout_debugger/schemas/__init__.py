"""Pydantic schemas for the Fanout Debugger API."""
