# taxtron/exceptions.py
"""
Domain errors raised by the transfer workflow.
Each carries the HTTP status and the client-facing message; main.py renders
them as {"success": false, "message": ...}.
"""


class TransferError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TransferError):
    """Entity absent, or present but in the wrong state for the operation."""
    status_code = 404


class ForbiddenError(TransferError):
    status_code = 403


class ValidationError(TransferError):
    status_code = 400


class InvalidOperationError(TransferError):
    """Well-formed request the workflow refuses, e.g. a self-transfer."""
    status_code = 400


class ConflictError(TransferError):
    status_code = 409


class PaymentRequiredError(TransferError):
    status_code = 402
