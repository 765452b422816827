"""Order lifecycle and notification dispatch service."""
