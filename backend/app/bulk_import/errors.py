"""Batch-level failures of the bulk import flow.

Row-level problems (AI failures, validation warnings, missing fields, rendering
failures) never raise out of a stage; they are recorded on the row instead.
"""


class BulkImportError(Exception):
    """Base class for errors that stop a bulk import step."""


class NoValidRows(BulkImportError):
    def __init__(self, message: str = "No valid rows found. Please check headers."):
        super().__init__(message)


class MalformedUpload(BulkImportError):
    """The uploaded file could not be read as a spreadsheet or delimited text."""


class BatchInProgress(BulkImportError):
    def __init__(self, message: str = "A batch is already running for this session"):
        super().__init__(message)


class InvalidBatchState(BulkImportError):
    """The requested step is not allowed from the batch's current step."""


class AuthenticationRequired(BulkImportError):
    def __init__(self, message: str = "Sign in to download generated documents"):
        super().__init__(message)
