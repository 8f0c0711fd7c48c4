"""
Core business logic for pool session schedules.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns. Pydantic is used only for the wire model
of incoming snapshots. This separation means we can test the
validation and date logic in isolation.
"""
