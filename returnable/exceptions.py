"""Exceptions raised by the returnable service layer."""


class AllocationExhausted(Exception):
    """
    No free (identifier, token) pair was found within the attempt ceiling.

    This is an operational signal that the identifier keyspace is filling up,
    not a transient error to be retried by callers.
    """

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to allocate a unique identifier after {attempts} attempts")
