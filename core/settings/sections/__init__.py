"""Settings sections."""
