class TrackerError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(TrackerError):
    """Rejected input; raised before anything is written."""

    status_code = 400


class NotFoundError(TrackerError):
    status_code = 404
