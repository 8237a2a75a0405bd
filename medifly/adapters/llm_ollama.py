# medifly/adapters/llm_ollama.py
# Local LLM for query understanding via an Ollama daemon (JSON mode).
import os
from typing import Dict, Optional, Tuple

import requests

from medifly.ports import LLMPort


class OllamaAdapter(LLMPort):
    def __init__(
        self,
        model: str = "llama3.1",
        host: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.model = model
        self.host = (host or os.environ.get("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def _error_message(r: requests.Response) -> str:
        try:
            return r.json().get("error") or r.text
        except ValueError:
            return r.text

    def chat(self, system: str, user: str, temperature: float, max_tokens: int) -> Tuple[str, Dict]:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "format": "json",
            "options": {"temperature": temperature, "num_predict": max_tokens},
            "stream": False,
        }
        r = self.session.post(f"{self.host}/api/chat", json=body, timeout=self.timeout)
        if r.status_code >= 400:
            raise RuntimeError(f"Ollama {r.status_code}: {self._error_message(r)}")
        data = r.json()
        text = (data.get("message") or {}).get("content") or ""
        usage = {
            "prompt_tokens": data.get("prompt_eval_count"),
            "completion_tokens": data.get("eval_count"),
        }
        return text, usage
