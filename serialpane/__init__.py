"""Two-pane terminal viewer for serial device output."""

__version__ = "0.1.0"
