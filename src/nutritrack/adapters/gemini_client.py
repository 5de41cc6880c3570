"""Gemini REST API client."""

from dataclasses import dataclass

import httpx

from nutritrack.domain.errors import InferenceTransportError
from nutritrack.services.inference import GenerationClient, GenerationResponse


@dataclass
class HttpxGeminiClient(GenerationClient):
    """HTTPX-backed client for the Gemini generative language API."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float = 30.0) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def generate_content(
        self, *, model: str, api_key: str, payload: dict[str, object]
    ) -> GenerationResponse:
        """Call generateContent for a model."""
        url = f"{self.base_url}/models/{model}:generateContent"
        return await self._send("POST", url, api_key=api_key, payload=payload)

    async def list_models(self, *, api_key: str) -> GenerationResponse:
        """Call the models listing endpoint, used to validate a key."""
        url = f"{self.base_url}/models"
        return await self._send("GET", url, api_key=api_key)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        api_key: str,
        payload: dict[str, object] | None = None,
    ) -> GenerationResponse:
        try:
            response = await self.http_client.request(
                method,
                url,
                params={"key": api_key},
                json=payload,
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise InferenceTransportError("Request timed out") from exc
        except httpx.ConnectError as exc:
            raise InferenceTransportError(
                str(exc) or "Network request failed", connection_failed=True
            ) from exc
        except httpx.TransportError as exc:
            raise InferenceTransportError(str(exc) or "Network error") from exc
        return GenerationResponse(
            status_code=response.status_code, body=_json_body(response)
        )


def _json_body(response: httpx.Response) -> dict[str, object]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
