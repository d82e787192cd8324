"""HTTP API and live WebSocket hubs."""
