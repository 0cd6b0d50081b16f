"""Tools for maintaining static "useful links" pages."""

__version__ = "1.0.0"
