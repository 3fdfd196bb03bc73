"""Event-to-notification fanout engine with stage tracing and replay."""

__version__ = "0.1.0"
