"""beads-query: filter and sort Beads issues with a small query language."""

__version__ = "0.1.0"
