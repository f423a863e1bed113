"""
Report Prompt Library

Reads the report prompt templates from ``report_prompts.json`` once and keeps
them in memory. Each prompt carries its system text, a ``{{placeholder}}``
user template, the JSON schema the answer must follow, and model settings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from edugrade.config import settings

DEFAULT_MODEL = "claude-sonnet-4-5"


@dataclass(frozen=True)
class ReportPrompt:
    prompt_id: str
    system_prompt: str
    user_template: str
    output_schema: dict[str, Any]
    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    max_tokens: int = 2048

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> ReportPrompt:
        return cls(
            prompt_id=data["prompt_id"],
            system_prompt=data["system_prompt"],
            user_template=data["user_template"],
            output_schema=data.get("output_schema", {}),
            model=data.get("model", DEFAULT_MODEL),
            temperature=data.get("temperature", 0.3),
            max_tokens=data.get("max_tokens", 2048),
        )

    def render(self, context: Mapping[str, str]) -> str:
        """Fill the ``{{name}}`` placeholders of the user template."""
        message = self.user_template
        for key, value in context.items():
            message = message.replace("{{" + key + "}}", str(value))
        return message

    @property
    def effective_model(self) -> str:
        """``settings.AI_REPORT_MODEL`` wins over the model stored with the prompt."""
        return settings.AI_REPORT_MODEL or self.model


class PromptLibrary:
    """Report prompts keyed by id (e.g. ``REPORT-ANALYSIS``)."""

    def __init__(self, path: Path | None = None):
        self.path = path or settings.PROMPT_LIBRARY_PATH
        if not self.path.exists():
            raise FileNotFoundError(f"Prompt library not found: {self.path}")

        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.version: str = data.get("version", "unknown")
        self._prompts = {
            prompt["prompt_id"]: ReportPrompt.from_json(prompt)
            for prompt in data.get("prompts", [])
        }

    def get_prompt(self, prompt_id: str) -> ReportPrompt:
        """
        Raises:
            KeyError: If no prompt has this id
        """
        try:
            return self._prompts[prompt_id]
        except KeyError:
            known = ", ".join(sorted(self._prompts))
            raise KeyError(f"Unknown report prompt {prompt_id!r} (known: {known})") from None

    def __len__(self) -> int:
        return len(self._prompts)

    def __contains__(self, prompt_id: object) -> bool:
        return prompt_id in self._prompts

    def __repr__(self) -> str:
        return f"PromptLibrary(version={self.version}, prompts={len(self)})"


_prompt_library: PromptLibrary | None = None


def get_prompt_library(force_reload: bool = False) -> PromptLibrary:
    """Shared library instance, loaded on first use."""
    global _prompt_library

    if _prompt_library is None or force_reload:
        _prompt_library = PromptLibrary()

    return _prompt_library
