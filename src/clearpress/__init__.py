"""clearpress: compliance analysis and editor annotations for PR content."""

__version__ = "0.1.0"
