from typing import Any, Protocol

from backend.v1.infra.jobs.errors import UnknownJobTypeError


class JobHandler(Protocol):
    """Protocol for job handlers that process background tasks."""

    async def handle(self, job: Any) -> dict[str, Any] | None:
        """
        Handle a claimed background job.

        Args:
            job: The claimed job (type tag, payload, attempt counters)

        Returns:
            Optional result dictionary, logged on completion

        Raises:
            JobPayloadError: the payload can never be processed
            Exception: any other failure is retried with backoff
        """
        ...


class JobRegistry:
    """Maps job type tags to the handler that processes them.

    A worker owns one registry. Once frozen, late registrations are refused
    so the set of types a production worker accepts is fixed at startup.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, JobHandler] = {}
        self._frozen = False

    def register(self, job_type: str, handler: JobHandler) -> None:
        if self._frozen:
            raise RuntimeError(
                f"Cannot register handler for {job_type!r}: registry is frozen"
            )
        if not job_type or not job_type.strip():
            raise ValueError("job type is required")
        self._handlers[job_type] = handler

    def get(self, job_type: str) -> JobHandler:
        try:
            return self._handlers[job_type]
        except KeyError:
            raise UnknownJobTypeError(job_type) from None

    def list(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, job_type: object) -> bool:
        return job_type in self._handlers

    def freeze(self) -> None:
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen
