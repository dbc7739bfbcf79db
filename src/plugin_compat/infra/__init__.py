"""Infrastructure helpers (logging, paths)."""
