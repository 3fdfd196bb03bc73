"""Core configuration for the Fanout Debugger application."""
