# core/errors.py
"""
Error taxonomy shared by the store / identity adapters and the API layer.
Every error carries a human-readable message that is shown as-is to the user.
"""


class ChargerQCError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AuthError(ChargerQCError):
    """Bad credentials or an unknown / ended session."""


class FetchError(ChargerQCError):
    """The collection subscription failed; shown as a banner."""


class WriteError(ChargerQCError):
    """A create or update write was not acknowledged by the store."""


class UpdateInProgress(WriteError):
    """A checklist write for the same charger is still outstanding."""
