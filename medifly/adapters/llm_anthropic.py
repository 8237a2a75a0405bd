"""
Anthropic Messages API adapter (Claude models).
Implements LLMPort: chat(system, user, temperature, max_tokens) -> (text, usage).
"""

from typing import Dict, Optional, Tuple

import anthropic

from medifly.ports import LLMPort


class AnthropicAdapter(LLMPort):
    def __init__(self, model: str = "claude-sonnet-4-20250514", api_key: Optional[str] = None, timeout: float = 30.0):
        self.model = model
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)

    def chat(self, system: str, user: str, temperature: float, max_tokens: int) -> Tuple[str, Dict]:
        resp = self.client.messages.create(
            model=self.model,
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": user}],
        )
        text = "".join(block.text for block in resp.content if getattr(block, "type", None) == "text")
        usage = {}
        if getattr(resp, "usage", None) is not None:
            usage = {
                "prompt_tokens": resp.usage.input_tokens,
                "completion_tokens": resp.usage.output_tokens,
            }
        return text, usage
