"""API router package for the Flock backend."""

from flock.api import auth, feed, posts, users

__all__ = ["auth", "feed", "posts", "users"]
