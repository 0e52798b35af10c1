"""Web app package."""
