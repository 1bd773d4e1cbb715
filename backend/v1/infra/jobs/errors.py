"""
Job queue error taxonomy.
"""


class JobQueueError(Exception):
    """Base class for job queue errors."""


class JobStoreError(JobQueueError):
    """A queue statement failed or the store was unreachable."""


class JobPayloadError(JobQueueError, ValueError):
    """The payload cannot be serialized on enqueue or decoded by its handler.

    Raised from a handler, it marks the job as poison: retrying cannot help.
    """


class UnknownJobTypeError(JobQueueError, LookupError):
    """No handler is registered for the job's type tag."""

    def __init__(self, job_type: str):
        self.job_type = job_type
        super().__init__(f"unknown job type {job_type!r}")


# Errors that will fail the same way on every attempt
POISON_ERRORS: tuple[type[Exception], ...] = (JobPayloadError, UnknownJobTypeError)
