"""Settings and logging setup for the heimdall CLI itself."""
