"""HTTP API for Notewise."""
