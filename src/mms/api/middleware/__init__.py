"""ASGI middleware and exception handlers for the mms API."""
