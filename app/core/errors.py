"""Application error taxonomy.

`AppError` subclasses are raised by the service layer and turned into
`{"error": message}` JSON responses by the handlers registered in `app.main`.
Email errors never reach an HTTP caller: delivery runs on the worker.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class SlotUnavailableError(ValidationError):
    def __init__(self, message: str = "slot unavailable"):
        super().__init__(message)


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class EmailError(Exception):
    pass


class NotConfiguredError(EmailError):
    pass


class TransportError(EmailError):
    """Provider rejected the message or could not be reached."""


class EmailRateLimitedError(EmailError):
    pass
