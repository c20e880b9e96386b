class FacesError(Exception):
    """Base error for failures that are reported to the API caller."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidVotePair(FacesError):
    status_code = 400


class ProfileNotFound(FacesError):
    status_code = 404


class NotRegistered(FacesError):
    status_code = 404


class AlreadyImported(FacesError):
    status_code = 409


class VoteConflict(FacesError):
    status_code = 409


class RegistryUnavailable(FacesError):
    status_code = 502
