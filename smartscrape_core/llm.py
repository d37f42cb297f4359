#!/usr/bin/env python3
"""Async client for the local text-generation endpoint (Ollama /api/generate)"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from .config import Config
from .errors import LLMError

logger = logging.getLogger(__name__)


class OllamaClient:
    """Minimal async client; endpoint and model are read from the shared config on every call"""

    def __init__(self, config: Config):
        self.config = config

    def build_payload(self, prompt: str, max_tokens: Optional[int] = None) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "temperature": self.config.llm_temperature,
            "top_p": self.config.llm_top_p,
        }
        if max_tokens is not None:
            options["max_tokens"] = max_tokens
        payload: Dict[str, Any] = {
            "model": self.config.llm_model,
            "prompt": prompt,
            "stream": False,
            "options": options,
        }
        if self.config.llm_json_mode:
            payload["format"] = "json"
        return payload

    async def generate(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """
        Run one non-streaming generation and return the model text.

        Raises:
            LLMError: transport failure, timeout, non-2xx status or a non-JSON body
        """
        payload = self.build_payload(prompt, max_tokens)
        timeout_obj = aiohttp.ClientTimeout(total=self.config.llm_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout_obj) as session:
                async with session.post(self.config.llm_endpoint, json=payload) as resp:
                    if resp.status >= 400:
                        raise LLMError(f"Gemma API error: {resp.status}")
                    data = await resp.json(content_type=None)
        except LLMError:
            raise
        except asyncio.TimeoutError as e:
            raise LLMError(f"Gemma API timeout after {self.config.llm_timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise LLMError(f"Gemma API request failed: {e}") from e

        if not isinstance(data, dict):
            return str(data)
        text = data.get("response") or data.get("text") or ""
        return text if isinstance(text, str) else str(text)

    async def ping(self) -> bool:
        """Connectivity check: True when the endpoint answers a tiny prompt with 2xx."""
        payload = {
            "model": self.config.llm_model,
            "prompt": "Test connection",
            "stream": False,
        }
        timeout_obj = aiohttp.ClientTimeout(total=self.config.status_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout_obj) as session:
                async with session.post(self.config.llm_endpoint, json=payload) as resp:
                    return resp.status < 400
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Gemma connection test failed: {e}")
            return False
