"""HTTP and WebSocket endpoint routers."""
