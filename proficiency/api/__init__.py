"""HTTP API for the proficiency engine."""
