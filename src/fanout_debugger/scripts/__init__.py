"""Command-line utilities for the Fanout Debugger application."""
