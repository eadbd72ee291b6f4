"""Core primitives for mms: structure model, schema synthesis, data access.

Nothing in this package knows about HTTP or the terminal.  Components
raise :mod:`mms.core.errors` exceptions; the ops layer turns them into
results.
"""
