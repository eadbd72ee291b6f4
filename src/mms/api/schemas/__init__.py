"""Pydantic schemas for request bodies and response envelopes."""
