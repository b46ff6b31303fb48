"""Submission of assembled configurations to the execution service."""

import json
import logging
from dataclasses import asdict, dataclass

import httpx

from certweb.errors import SubmissionError
from certweb.models import ConfigurationDocument
from certweb.tracing import log_session_event

logger = logging.getLogger(__name__)

RUN_ENDPOINT = "/runFunction"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome shown to the operator after a submission."""

    heading: str
    message: str
    state: str  # "success" or "danger"

    @property
    def ok(self) -> bool:
        return self.state == "success"

    @classmethod
    def success(cls, message: str) -> "SubmissionResult":
        return cls(heading="Success", message=message, state="success")

    @classmethod
    def failure(cls, message: str) -> "SubmissionResult":
        return cls(heading="Error", message=message, state="danger")

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class SubmissionGateway:
    """Sends configuration documents to the execution service.

    Only one submission may be in flight; ``busy`` is set for the duration
    of a request and cleared when it completes or fails.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 3600.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def submit(
        self,
        document: ConfigurationDocument,
        kubeconfig: bytes | None = None,
        kubeconfig_name: str = "kubeconfig",
    ) -> SubmissionResult:
        """Submit a document and report the outcome.

        Never raises for service or transport failures; those become an
        ``Error`` result carrying the status text or transport message.
        """
        if self._busy:
            return SubmissionResult.failure("A submission is already in progress")

        self._busy = True
        try:
            message = await self.send(document, kubeconfig, kubeconfig_name)
            result = SubmissionResult.success(message)
        except SubmissionError as e:
            logger.error("Submission failed: %s", e.message)
            result = SubmissionResult.failure(e.message)
        finally:
            self._busy = False

        log_session_event(
            "submit",
            "gateway",
            f"{result.heading}: {result.message}",
            {"selected": len(document.selected_tests)},
            level=logging.INFO if result.ok else logging.WARNING,
        )
        return result

    async def send(
        self,
        document: ConfigurationDocument,
        kubeconfig: bytes | None = None,
        kubeconfig_name: str = "kubeconfig",
    ) -> str:
        """POST the document and return the service's message.

        Raises:
            SubmissionError: On a non-success status or a transport failure.
        """
        data = {"jsonData": json.dumps(document.to_payload())}
        files = None
        if kubeconfig is not None:
            files = {"kubeConfigPath": (kubeconfig_name, kubeconfig, "application/octet-stream")}

        try:
            if self._client is not None:
                response = await self._client.post(
                    f"{self.base_url}{RUN_ENDPOINT}", data=data, files=files
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        f"{self.base_url}{RUN_ENDPOINT}", data=data, files=files
                    )
        except httpx.HTTPError as e:
            raise SubmissionError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise SubmissionError(response.reason_phrase, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise SubmissionError("Invalid response from execution service") from e
        return str(body.get("message") or body.get("Message") or "")
