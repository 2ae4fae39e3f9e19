# backend/fitpet/errors.py


class FitPetError(Exception):
    """Base for errors a route turns into a JSON response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"message": self.message}


class NotFoundError(FitPetError):
    status_code = 404


class ConflictError(FitPetError):
    status_code = 409


class ValidationError(FitPetError):
    status_code = 400
