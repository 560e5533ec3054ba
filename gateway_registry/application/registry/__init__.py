"""Schema registry orchestration."""
