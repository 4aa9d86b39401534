"""Job modules executed as ``python -m casegen.worker.jobs.<name>``."""
