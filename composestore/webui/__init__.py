"""HTTP surface of the app management service."""
