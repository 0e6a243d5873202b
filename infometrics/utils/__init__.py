"""Small shared helpers (env flags, logging setup, build metadata)."""
