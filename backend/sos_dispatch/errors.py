class DispatchError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DispatchError):
    status_code = 404


class ValidationError(DispatchError):
    status_code = 400


class Conflict(DispatchError):
    status_code = 409
