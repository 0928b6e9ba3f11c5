"""Social engagement (likes, comments, follows) for faculty profile pages."""

__version__ = "0.1.0"
