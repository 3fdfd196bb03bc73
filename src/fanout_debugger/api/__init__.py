"""HTTP API for the Fanout Debugger application."""
