from typing import Dict, Optional, Tuple

from openai import OpenAI

from medifly.ports import LLMPort


class OpenAIAdapter(LLMPort):
    def __init__(self, model: str, api_key: Optional[str] = None, timeout: float = 30.0):
        self.model = model
        self.client = OpenAI(api_key=api_key, timeout=timeout)

    def chat(self, system: str, user: str, temperature: float, max_tokens: int) -> Tuple[str, Dict]:
        resp = self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
            messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
        )
        msg = resp.choices[0].message.content or ""
        usage = getattr(resp, "usage", None)
        usage = usage.model_dump() if usage else {}
        return msg, usage
