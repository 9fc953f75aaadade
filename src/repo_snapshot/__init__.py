"""Select project files and export them as an AI-ready snapshot."""

__version__ = "0.1.0"
