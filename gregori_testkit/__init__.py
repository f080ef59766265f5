"""Session-aware async test kit for the Gregori API."""
