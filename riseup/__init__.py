"""RiseUp Creators backend: music streaming and creator marketplace API."""

__version__ = "0.1.0"
