"""HTTP client for the trainer service's hold gate."""
import logging
import time

import httpx

from fitnest import config
from fitnest.auth import create_service_token

logger = logging.getLogger(__name__)


class TrainerServiceClient:
    def __init__(self, http: httpx.Client = None, retry_delay: float = 0.5):
        self.http = http or httpx.Client(
            base_url=config.TRAINER_SERVICE_URL,
            timeout=config.TRAINER_SERVICE_TIMEOUT,
        )
        self.retry_delay = retry_delay

    def _post(self, path: str, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {create_service_token()}"}
        return self.http.post(path, json=payload, headers=headers)

    def hold_session(self, session_id: str, customer_id: str) -> httpx.Response:
        return self._post("/holdsession", {"sessionId": session_id, "customerId": customer_id})

    def release_session(self, session_id: str, customer_id: str = None) -> httpx.Response:
        payload = {"sessionId": session_id}
        if customer_id:
            payload["customerId"] = customer_id
        return self._post("/releasesession", payload)

    def book_session(self, session_id: str, customer_id: str) -> httpx.Response:
        return self._post("/booksession", {"sessionId": session_id, "customerId": customer_id})

    def release_session_quietly(self, session_id: str, customer_id: str = None, attempts: int = None) -> bool:
        """Release with bounded retries. Never raises; returns whether the gate confirmed."""
        attempts = attempts or config.RELEASE_RETRY_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                response = self.release_session(session_id, customer_id)
            except httpx.HTTPError as exc:
                logger.warning("Release of session %s failed (attempt %s/%s): %s", session_id, attempt, attempts, exc)
            else:
                if response.is_success:
                    return True
                if response.status_code < 500:
                    # 4xx will not change on retry
                    logger.warning("Release of session %s rejected: %s %s", session_id, response.status_code, response.text)
                    return False
                logger.warning(
                    "Release of session %s got %s (attempt %s/%s)", session_id, response.status_code, attempt, attempts
                )
            if attempt < attempts and self.retry_delay:
                time.sleep(self.retry_delay * attempt)

        logger.error("Giving up releasing session %s; hold will lapse at checkout expiry", session_id)
        return False


_default_client = None


def get_trainer_client() -> TrainerServiceClient:
    global _default_client
    if _default_client is None:
        _default_client = TrainerServiceClient()
    return _default_client


def response_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or default
    return default
