"""Shared Vertex AI REST plumbing."""

import logging
from typing import Any, Optional

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import requests

from ..config import config
from ..errors import CredentialsError, TransportError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class VertexRestClient:
    """Base for clients that call publisher models over the Vertex AI REST API."""

    DEFAULT_TIMEOUT = 120.0

    def __init__(
        self,
        model: str,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._project_id = project_id or config.google_cloud_project
        self._location = location or config.google_cloud_location
        self._model = model
        self._session = session or requests.Session()
        self._timeout = timeout
        self._credentials = None

        if not self._project_id:
            raise CredentialsError("GOOGLE_CLOUD_PROJECT not set")

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def model(self) -> str:
        return self._model

    def model_url(self, method: str) -> str:
        """REST URL for ``method`` on this client's publisher model."""
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{self._model}:{method}"
        )

    def _headers(self) -> dict[str, str]:
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=SCOPES)
        if not self._credentials.valid:
            self._credentials.refresh(google.auth.transport.requests.Request())
        return {
            "Authorization": f"Bearer {self._credentials.token}",
            "Content-Type": "application/json",
        }

    def post_json(self, method: str, body: dict[str, Any], what: str) -> dict[str, Any]:
        """POST ``body`` to ``method`` and return the decoded response.

        Raises:
            TransportError: On connection failures and non-200 responses.
        """
        url = self.model_url(method)
        try:
            response = self._session.post(
                url, json=body, headers=self._headers(), timeout=self._timeout
            )
        except (requests.RequestException, google.auth.exceptions.GoogleAuthError) as e:
            logger.error(f"{what} request failed: {e}")
            raise TransportError(f"{what} request failed: {e}") from e

        if response.status_code != 200:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"{what} API error: {error_msg}")
            raise TransportError(f"{what} API error {error_msg}")

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{what} returned invalid JSON: {e}") from e
