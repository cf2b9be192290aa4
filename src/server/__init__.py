"""HTTP and WebSocket front end for the simulation."""
