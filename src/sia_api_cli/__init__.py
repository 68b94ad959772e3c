"""Command-line translator from path tokens and flags to Sia API requests."""

__all__ = ["cli", "command", "config", "dispatcher", "endpoints", "errors", "logging", "request", "units"]
__version__ = "1.0.0"
