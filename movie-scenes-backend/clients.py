"""
HTTP clients for the third-party providers used by the Movie Scenes backend.
Each client converts transport and status failures into ProviderError.
"""

import logging
import requests

from config import (
    OPENAI_API_URL,
    OPENAI_CHAT_MODEL,
    OPENAI_EMBEDDING_MODEL,
    PINECONE_CONTROL_URL,
    REPLICATE_API_URL,
    REPLICATE_VIDEO_MODEL,
    REQUEST_TIMEOUT,
)
from errors import ConfigurationError, ProviderError


def _error_detail(response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("detail") or payload
        if isinstance(error, dict):
            return error.get("message") or str(error)
        return str(error)
    return str(payload)


def best_effort(label: str, call):
    """Runs a diagnostic call whose failure must never affect the request."""
    try:
        result = call()
        logging.info(f"🔎 {label}: {result}")
        return result
    except Exception as e:
        logging.warning(f"⚠️ {label} failed (continuing): {e}")
        return None


class OpenAIClient:
    """Embeddings and chat completions against the OpenAI REST API."""

    def __init__(self, api_key: str, base_url: str = OPENAI_API_URL,
                 chat_model: str = OPENAI_CHAT_MODEL, embedding_model: str = OPENAI_EMBEDDING_MODEL):
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = requests.post(f"{self.base_url}{path}", json=payload, headers=self.headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderError("Could not connect to the language model provider", details=str(e))
        if response.status_code in (401, 403):
            raise ConfigurationError("Server configuration error - language model credentials rejected",
                                     details=_error_detail(response))
        if not response.ok:
            raise ProviderError("Language model request failed", details=_error_detail(response))
        return response.json()

    def embed(self, text: str) -> list:
        data = self._post("/embeddings", {"model": self.embedding_model, "input": text})
        return data["data"][0]["embedding"]

    def complete(self, prompt: str, temperature: float) -> str:
        payload = {
            "model": self.chat_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        data = self._post("/chat/completions", payload)
        return data.get("choices", [{}])[0].get("message", {}).get("content", "") or ""


class PineconeClient:
    """Similarity search against a single Pinecone index."""

    def __init__(self, api_key: str, index_name: str, index_host: str = None,
                 control_url: str = PINECONE_CONTROL_URL):
        self.index_name = index_name
        self.control_url = control_url.rstrip("/")
        self.index_host = index_host
        self.headers = {"Api-Key": api_key, "Content-Type": "application/json"}

    def _request(self, method: str, url: str, payload: dict = None) -> dict:
        try:
            response = requests.request(method, url, json=payload, headers=self.headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderError("Could not connect to the vector index", details=str(e))
        if response.status_code in (401, 403):
            raise ConfigurationError("Server configuration error - vector index credentials rejected",
                                     details=_error_detail(response))
        if not response.ok:
            raise ProviderError("Vector index request failed", details=_error_detail(response))
        return response.json()

    def list_indexes(self) -> list:
        data = self._request("GET", f"{self.control_url}/indexes")
        return [index.get("name") for index in data.get("indexes", [])]

    def _host(self) -> str:
        if not self.index_host:
            data = self._request("GET", f"{self.control_url}/indexes/{self.index_name}")
            self.index_host = data["host"]
        host = self.index_host
        return host if host.startswith("http") else f"https://{host}"

    def describe_index_stats(self) -> dict:
        return self._request("POST", f"{self._host()}/describe_index_stats", {})

    def query(self, vector: list, top_k: int, namespace: str, include_metadata: bool = True) -> list:
        logging.info(f"Querying index {self.index_name}/{namespace} with topK={top_k}, vector[:5]={vector[:5]}")
        payload = {
            "vector": vector,
            "topK": top_k,
            "namespace": namespace,
            "includeMetadata": include_metadata,
        }
        data = self._request("POST", f"{self._host()}/query", payload)
        return data.get("matches", [])

    def upsert(self, vectors: list, namespace: str) -> int:
        """Writes vectors (`{id, values, metadata}`) into a namespace; returns the upserted count."""
        data = self._request("POST", f"{self._host()}/vectors/upsert", {"vectors": vectors, "namespace": namespace})
        return data.get("upsertedCount", 0)


class ReplicateClient:
    """Text-to-video predictions on Replicate."""

    def __init__(self, api_token: str, base_url: str = REPLICATE_API_URL, model: str = REPLICATE_VIDEO_MODEL):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.headers = {"Authorization": f"Bearer {api_token}", "Content-Type": "application/json"}

    def create_prediction(self, prompt: str) -> dict:
        url = f"{self.base_url}/models/{self.model}/predictions"
        try:
            response = requests.post(url, json={"input": {"prompt": prompt}}, headers=self.headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderError("Could not connect to the video generation provider",
                                details=str(e), errorType="connectivity")
        if response.status_code in (401, 403):
            raise ConfigurationError("Server configuration error - video provider credentials rejected",
                                     details=_error_detail(response), errorType="configuration")
        if response.status_code in (400, 422):
            raise ProviderError("Video generation request was rejected", details=_error_detail(response),
                                status_code=400, errorType="validation")
        if not response.ok:
            raise ProviderError("Video generation request failed", details=_error_detail(response),
                                errorType="provider")
        prediction = response.json()
        logging.info(f"🚀 Prediction {prediction.get('id')} created with status {prediction.get('status')}")
        return prediction

    def get_prediction(self, prediction_id: str) -> dict:
        try:
            response = requests.get(f"{self.base_url}/predictions/{prediction_id}", headers=self.headers,
                                    timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProviderError("Failed to check video generation status", details=str(e))
        return response.json()

    def download(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProviderError("Failed to download generated video", details=str(e))
        return response.content


def output_url(prediction: dict) -> str:
    """Returns the video URL from a prediction's output (a string or a list of strings)."""
    output = prediction.get("output")
    if isinstance(output, (list, tuple)):
        output = output[0] if output else None
    if not isinstance(output, str) or not output:
        raise ProviderError("Video provider returned no output URL", details=str(prediction.get("output")))
    return output
