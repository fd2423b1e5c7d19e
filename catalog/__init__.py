"""
Library catalog service layer.

Users sign up, log in with JWTs and keep a personal library of books.
The HTTP surface lives in the catalog_web package.
"""

__version__ = "1.0.0"
