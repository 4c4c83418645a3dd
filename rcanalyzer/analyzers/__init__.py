"""Per-domain analyzers for RocketChat support dumps."""
