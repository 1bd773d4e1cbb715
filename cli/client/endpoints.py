"""API Endpoint Wrappers - Type-safe API calls"""

from typing import Any

from .base import APIClient
from ..utils.config_manager import config


class SaaSCoreClient:
    """High-level client with typed endpoint methods"""

    def __init__(
        self,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        # Use config values if not provided
        api_config = config.load_config().get("api", {})
        final_base_url = base_url or api_config.get("base_url", "http://localhost:8000")
        final_headers = dict(headers or api_config.get("headers", {}) or {})

        token = api_config.get("token")
        if token and "Authorization" not in final_headers:
            final_headers["Authorization"] = f"Bearer {token}"

        self.api = APIClient(
            base_url=final_base_url,
            timeout=int(api_config.get("timeout", 30)),
            headers=final_headers,
        )

    def __enter__(self):
        self.api.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.api.__exit__(exc_type, exc_val, exc_tb)

    # Health Check
    def health_check(self) -> dict[str, Any]:
        """Check API health status"""
        return self.api.get("/healthz")

    # Jobs Endpoints
    def enqueue_job(
        self,
        job_type: str,
        payload: Any,
        run_at: str | None = None,
        max_attempts: int | None = None,
    ) -> dict[str, Any]:
        """Enqueue a background job"""
        body: dict[str, Any] = {"type": job_type, "payload": payload}
        if run_at:
            body["run_at"] = run_at
        if max_attempts:
            body["max_attempts"] = max_attempts
        return self.api.post("/jobs", json=body)

    def list_jobs(
        self,
        status: list[str] | None = None,
        job_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict[str, Any]:
        """List jobs with optional filters"""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = status
        if job_type:
            params["type"] = job_type
        return self.api.get("/jobs", params=params)

    def get_job(self, job_id: str) -> dict[str, Any]:
        """Get a job by ID"""
        return self.api.get(f"/jobs/{job_id}")

    def job_stats(self) -> dict[str, Any]:
        """Get queue statistics"""
        return self.api.get("/jobs/stats/overview")

    # Email Endpoints
    def send_welcome_email(self, email: str) -> dict[str, Any]:
        """Queue a welcome email"""
        return self.api.post("/emails/welcome", json={"email": email})

    def send_invite_email(
        self, email: str, accept_url: str, org_name: str | None = None
    ) -> dict[str, Any]:
        """Queue an organization invite email"""
        body: dict[str, Any] = {"email": email, "accept_url": accept_url}
        if org_name:
            body["org_name"] = org_name
        return self.api.post("/emails/invite", json=body)
