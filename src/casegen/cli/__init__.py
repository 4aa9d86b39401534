"""Command line entrypoints for casegen."""
