"""API layer: HTTP routes and the client WebSocket endpoint."""
