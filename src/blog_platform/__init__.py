"""Blog Platform: accounts, sessions, posts, categories and comments on FastAPI and MongoDB."""

__version__ = "1.0.0"
