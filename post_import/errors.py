"""Exceptions that abort an import."""

from __future__ import annotations


class ImportFailure(Exception):
    """Base class for fatal import errors."""


class FetchError(ImportFailure):
    """The source page could not be retrieved."""


class ExtractionError(ImportFailure):
    """No readable article content was found in the page."""


class DraftValidationError(ImportFailure):
    """An editor draft is missing required fields."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("Missing required fields: " + ", ".join(self.missing))
