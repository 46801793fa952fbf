import logging
import httpx
import time
import random
from typing import List, Dict, Any, Optional
from config.settings import AppSettings, settings as default_settings
from core.errors import BackendError

logger = logging.getLogger(__name__)

class LLMClient:
    """
    OpenAI-compatible API client for query embeddings and chat completions.
    Retries rate limits and transport failures with exponential backoff.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        app_settings = app_settings or default_settings
        # Fails fast when the key is missing
        self.api_key = app_settings.require("openai_api_key")
        self.config = app_settings.llm
        self.chat_model = app_settings.chat_model
        self.base_url = self.config.base_url.rstrip('/')
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        self.max_retries = 3
        self.base_delay = 2.0

    def embed(self, text: str) -> List[float]:
        payload = {"model": self.config.embedding_model, "input": text}
        data = self._post("/embeddings", payload)
        try:
            return [float(x) for x in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise BackendError(f"Unexpected embeddings response: {e}") from e

    def generate(self, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self.config.temperature
        }
        data = self._post("/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        return (content or "").strip()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        for attempt in range(self.max_retries):
            try:
                with httpx.Client(timeout=60.0) as client:
                    response = client.post(url, headers=self.headers, json=payload)

                    if response.status_code == 429 and attempt < self.max_retries - 1:
                        delay = self.base_delay * (2 ** attempt) + random.uniform(0, 1)
                        logger.warning(f"Rate limited (429). Retrying in {delay:.2f}s... (Attempt {attempt+1}/{self.max_retries})")
                        time.sleep(delay)
                        continue

                    response.raise_for_status()
                    return response.json()
            except httpx.HTTPStatusError as e:
                raise BackendError(f"POST {path} failed: {e.response.status_code}", e.response.status_code) from e
            except (httpx.HTTPError, ValueError) as e:
                if attempt == self.max_retries - 1:
                    raise BackendError(f"POST {path} failed: {e}") from e
                delay = self.base_delay * (2 ** attempt) + random.uniform(0, 1)
                logger.warning(f"Request failed: {e}. Retrying in {delay:.2f}s...")
                time.sleep(delay)

        raise BackendError(f"POST {path} failed after maximum retries")
