## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Error Types
## Description:
## Exceptions raised across the project. Parse problems never show up here: a bad row
## is dropped and a bad file simply yields zero rows.


class DrawDataError(Exception):
    """Base class for every error raised by this project."""


class UnknownGameError(DrawDataError, KeyError):
    """A game identifier the registry does not know. Always a programmer error."""

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Unknown game identifier: {game_id!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DataUnavailableError(DrawDataError):
    """Draw history could not be fetched and no usable cache exists."""


class DataInsufficientError(DrawDataError):
    """Fewer usable rows than an analysis needs."""


class FetchCancelled(DrawDataError):
    """The caller abandoned the request; nothing was written or returned."""
