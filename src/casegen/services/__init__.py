"""Service wiring for casegen."""
