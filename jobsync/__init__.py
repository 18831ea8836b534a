"""Live download-job synchronization client."""
