"""Shared builders for mms tests."""
