"""Embedding and image-captioning calls against an OpenAI-compatible REST API.

Every call carries the configured timeout; failures surface as
UpstreamServiceError and are never retried here.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Sequence

import requests

from ...errors import DimensionMismatch, UpstreamServiceError

VISION_PROMPT = """Analyze the image(s) of a found item (all images show the same object) and provide:
1. A concise title (max 50 characters)
2. A detailed description (2-3 sentences)
3. A list of 5-8 relevant tags

Format your response as JSON:
{
  "title": "...",
  "description": "...",
  "tags": ["tag1", "tag2", ...]
}"""


@dataclass(frozen=True)
class ImageAnalysis:
    title: str
    description: str
    tags: list[str] = field(default_factory=list)


def parse_analysis(content: str) -> ImageAnalysis:
    """Parse the model reply; tolerate code fences and plain-text answers."""
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            tags = data.get("tags") or []
            if isinstance(tags, str):
                tags = [t.strip() for t in tags.split(",")]
            return ImageAnalysis(
                title=str(data.get("title") or "Found Item").strip(),
                description=str(data.get("description") or "A found item").strip(),
                tags=[str(t).strip() for t in tags if str(t).strip()],
            )
    except ValueError:
        pass
    lines = [ln.strip() for ln in content.splitlines()]
    title = lines[0].split(":", 1)[-1].strip() if lines and lines[0] else ""
    description = " ".join(ln for ln in lines[1:3] if ln)
    tags = [t.strip() for t in lines[3].split(",") if t.strip()] if len(lines) > 3 else []
    return ImageAnalysis(title=title or "Found Item", description=description or "A found item", tags=tags)


class OpenAIClient:
    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        embedding_model: str = "text-embedding-3-small",
        vision_model: str = "gpt-4.1",
        dimension: int | None = None,
        timeout: float = 20.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.embedding_model = embedding_model
        self.vision_model = vision_model
        self.dimension = dimension
        self.timeout = timeout

    def _post(self, path: str, payload: dict, service: str) -> dict:
        if not self.api_key:
            raise UpstreamServiceError("OpenAI credentials are not configured", service=service)
        try:
            resp = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamServiceError(f"{service} request failed: {e.__class__.__name__}", service=service) from e
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            try:
                err = resp.json().get("error") or {}
                details = f"OpenAI API error ({err.get('type')} code={err.get('code')}): {err.get('message') or e}"
            except ValueError:
                details = f"HTTP {resp.status_code}: {resp.text[:500]}"
            raise UpstreamServiceError(details, service=service) from e
        return resp.json()

    def embed_text(self, text: str) -> list[float]:
        data = self._post("/embeddings", {"model": self.embedding_model, "input": text}, "embedding")
        try:
            vector = [float(v) for v in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamServiceError("Malformed embedding response", service="embedding") from e
        if self.dimension is not None and len(vector) != self.dimension:
            raise DimensionMismatch(len(vector), self.dimension)
        return vector

    def describe_images(self, image_urls: Sequence[str]) -> ImageAnalysis:
        if not image_urls:
            raise ValueError("at least one image is required")
        content: list[dict] = [{"type": "text", "text": VISION_PROMPT}]
        content += [{"type": "image_url", "image_url": {"url": url}} for url in image_urls]
        data = self._post(
            "/chat/completions",
            {"model": self.vision_model, "messages": [{"role": "user", "content": content}], "max_tokens": 500},
            "vision",
        )
        try:
            reply = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError("Malformed vision response", service="vision") from e
        if not reply:
            raise UpstreamServiceError("No response from the vision model", service="vision")
        return parse_analysis(reply)

    def describe_image(self, image_url: str) -> ImageAnalysis:
        return self.describe_images([image_url])
