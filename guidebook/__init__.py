"""Travel guide generation service."""
