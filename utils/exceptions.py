"""
utils/exceptions.py
-------------------
Errors raised by this package itself.
Database errors from psycopg2 are never wrapped; they propagate as-is.
"""


class DecryptionError(Exception):
    """A stored ciphertext could not be decrypted with the configured key."""


class UserIdCollisionError(Exception):
    """
    Raised when every generated user ID collided with an existing row.

    Attributes:
        attempts: How many insert attempts were made.
    """

    def __init__(self, attempts: int):
        super().__init__(f"Could not allocate a unique user ID after {attempts} attempts")
        self.attempts = attempts


class InvalidStatusError(ValueError):
    """Receipt status is not a valid target for the requested operation."""


class InvalidRoleError(ValueError):
    """User role is not one of the configured roles."""
