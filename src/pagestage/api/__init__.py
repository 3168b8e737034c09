"""JSON API endpoints for the preview server."""
