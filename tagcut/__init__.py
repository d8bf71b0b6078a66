"""tagcut: cut a versioned release of a git repository from its changelog."""

__version__ = "0.4.0"
