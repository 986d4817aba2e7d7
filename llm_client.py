# backend/llm_client.py

import base64
import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI

import config
from errors import EmptyModelResponse, MalformedModelOutput, UpstreamError
from prompts import (
    JOB_MATCH,
    LAYOUT_GENERATE,
    TEXT_PARSE,
    VISION_PARSE,
    system_message,
)

logger = logging.getLogger(__name__)

_openrouter_client: Optional[OpenAI] = None

# Per-operation model + sampling settings. Model ids can be overridden via
#   VISION_MODEL, TEXT_PARSE_MODEL, JOB_MATCH_MODEL, LAYOUT_MODEL
MODEL_PROFILES: Dict[str, Dict[str, Any]] = {
    VISION_PARSE: {
        "model": os.getenv("VISION_MODEL", "meta-llama/llama-3.2-90b-vision-instruct"),
        "temperature": 0.1,
    },
    TEXT_PARSE: {
        "model": os.getenv("TEXT_PARSE_MODEL", "meta-llama/llama-3.1-8b-instruct"),
        "temperature": 0.15,
    },
    JOB_MATCH: {
        "model": os.getenv("JOB_MATCH_MODEL", "meta-llama/llama-3.1-8b-instruct"),
        "temperature": 0.35,
    },
    LAYOUT_GENERATE: {
        "model": os.getenv("LAYOUT_MODEL", "meta-llama/llama-3.1-70b-instruct"),
        "temperature": 0.2,
    },
}


def _get_openrouter_client() -> OpenAI:
    """
    Lazily create an OpenAI-compatible client pointed at OpenRouter.

    max_retries=0: one outbound call per logical operation, failures go
    straight back to the caller.
    """
    global _openrouter_client
    if _openrouter_client is None:
        config.assert_env()
        _openrouter_client = OpenAI(
            api_key=config.OPENROUTER_API_KEY,
            base_url=config.OPENROUTER_BASE_URL,
            max_retries=0,
            timeout=httpx.Timeout(config.LLM_TIMEOUT_SECONDS, connect=10.0),
            default_headers={
                "HTTP-Referer": config.APP_BASE_URL,
                "X-Title": config.OPENROUTER_APP_NAME,
            },
        )
    return _openrouter_client


def _extract_content(content: Any) -> str:
    """
    Providers return either a plain string or a list of content parts;
    keep only the text parts.
    """
    if not content:
        return ""
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for part in content:
        text = part.get("text") if isinstance(part, dict) else getattr(part, "text", None)
        if isinstance(text, str):
            parts.append(text)
    return "\n".join(parts).strip()


def get_chat_completion(
    messages: List[Dict[str, Any]],
    model: Optional[str] = None,
    temperature: float = 0.0,
    json_mode: bool = False,
) -> str:
    """
    Send one chat completion request and return the first choice's text.

    - messages: list of {"role": "system"|"user", "content": str | parts}
    - json_mode: ask the provider for a JSON object response

    Raises UpstreamError on transport / HTTP failures and
    EmptyModelResponse when the reply carries no content.
    """
    client = _get_openrouter_client()
    used_model = model or MODEL_PROFILES[TEXT_PARSE]["model"]

    kwargs: Dict[str, Any] = {
        "model": used_model,
        "messages": messages,
        "temperature": float(temperature),
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        resp = client.chat.completions.create(**kwargs)
    except openai.APIStatusError as e:
        logger.warning("[LLM] %s returned HTTP %s", used_model, e.status_code)
        raise UpstreamError(f"Model provider returned HTTP {e.status_code}.") from e
    except openai.APIError as e:
        logger.warning("[LLM] request to %s failed: %s", used_model, e)
        raise UpstreamError(f"Model provider request failed: {e}") from e

    choices = getattr(resp, "choices", None) or []
    message = choices[0].message if choices else None
    content = _extract_content(getattr(message, "content", None))
    if not content:
        raise EmptyModelResponse("OpenRouter returned an empty response.")
    return content


def build_messages(
    operation: str,
    prompt: str,
    file_bytes: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    filename: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    System + user messages for one operation. When a file is attached the
    user message becomes a list of parts: the prompt text, then the file
    as a base64 data URL (image_url for images, file for PDFs).
    """
    system = {"role": "system", "content": system_message(operation)}
    if file_bytes is None:
        return [system, {"role": "user", "content": prompt}]

    mime = mime_type or "application/octet-stream"
    data_url = f"data:{mime};base64,{base64.b64encode(file_bytes).decode('ascii')}"
    if mime == "application/pdf":
        attachment = {
            "type": "file",
            "file": {"filename": filename or "resume.pdf", "file_data": data_url},
        }
    else:
        attachment = {"type": "image_url", "image_url": {"url": data_url}}

    return [
        system,
        {"role": "user", "content": [{"type": "text", "text": prompt}, attachment]},
    ]


def complete(
    operation: str,
    prompt: str,
    file_bytes: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    filename: Optional[str] = None,
) -> str:
    """Run one operation against its configured model profile."""
    profile = MODEL_PROFILES[operation]
    messages = build_messages(operation, prompt, file_bytes, mime_type, filename)
    logger.info("[LLM] %s -> %s", operation, profile["model"])
    return get_chat_completion(
        messages=messages,
        model=profile["model"],
        temperature=profile["temperature"],
        json_mode=True,
    )


def extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Best-effort: slice from the first '{' to the last '}' and decode.

    Tolerates prose or ```json fences around the payload. A stray brace
    in surrounding prose will break it.
    """
    trimmed = (raw or "").strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedModelOutput("AI response did not contain JSON.")

    candidate = trimmed[start : end + 1]
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Unable to parse AI JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedModelOutput("AI JSON was not an object.")
    return data
