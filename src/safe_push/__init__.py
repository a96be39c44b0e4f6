"""safe-push - decide whether a git push is safe before it reaches the remote."""

__version__ = "0.3.0"
