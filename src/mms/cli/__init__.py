"""Command-line interface for mms (``mms``)."""
