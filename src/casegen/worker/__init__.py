"""Batch worker entrypoints."""
