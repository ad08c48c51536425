"""Pytest fixtures for Miaobi tests."""

import io
import json
from pathlib import Path
from typing import Callable
from unittest.mock import Mock, patch

import httpx
import pytest
from PIL import Image

import miaobi.config


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep every test away from the real environment and settings file."""
    for name in (
        "API_KEY",
        "GEMINI_API_KEY",
        "OPENAI_API_KEY",
        "MIAOBI_PROVIDER",
        "MIAOBI_MODEL",
        "MIAOBI_BASE_URL",
        "MIAOBI_IMAGE_MAX_WIDTH",
        "MIAOBI_IMAGE_FETCH_TIMEOUT",
        "MIAOBI_IMAGE_CONCURRENCY",
        "MIAOBI_STRUCTURE_MAX_DEPTH",
    ):
        monkeypatch.delenv(name, raising=False)
    settings_path = tmp_path / "config" / "settings.json"
    monkeypatch.setenv("MIAOBI_SETTINGS_PATH", str(settings_path))
    monkeypatch.chdir(tmp_path)
    miaobi.config._settings = None
    yield settings_path
    miaobi.config._settings = None


def make_image(width: int, height: int, fmt: str = "PNG") -> bytes:
    """Encode a solid-colour image of the given size."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> Callable[[int, int], bytes]:
    """Factory for PNG payloads."""
    return make_image


class FakeImageServer:
    """httpx handler serving images by url and counting requests."""

    def __init__(self, images: dict[str, bytes] | None = None) -> None:
        self.images = dict(images or {})
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url in self.images:
            return httpx.Response(200, content=self.images[url])
        if "bad.url" in url:
            raise httpx.ConnectError("name resolution failed", request=request)
        return httpx.Response(404, content=b"not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def image_server() -> FakeImageServer:
    """An empty fake image server; tests register urls on it."""
    return FakeImageServer()


@pytest.fixture
def sample_markdown() -> str:
    """Sample article with images and a blank line."""
    return (
        "# 标题\n"
        "\n"
        "Intro ![chart](http://img.test/chart.png) text\n"
        "![missing](http://img.test/missing.png)\n"
        "Again ![chart](http://img.test/chart.png)"
    )


@pytest.fixture
def sample_analysis() -> dict:
    """A complete analysis reply in wire format."""
    return {
        "scores": {
            "total": 82,
            "readability": 78,
            "logic": 85,
            "emotion": 70,
            "creativity": 66,
        },
        "summary": "文章讨论了远程办公的利弊。",
        "toneAnalysis": "Professional",
        "keywords": ["远程办公", "效率", "沟通"],
        "corrections": [
            {
                "original": "在在",
                "suggestion": "在",
                "reason": "重复用字",
                "type": "typo",
                "location_snippet": "我们在在家中工作",
            }
        ],
        "titleAnalysis": {
            "score": 60,
            "viralPotential": "Medium",
            "critique": "标题较平淡",
            "suggestions": ["加入数字"],
            "examples": ["远程办公的 3 个真相"],
        },
        "structure": {
            "name": "远程办公",
            "type": "root",
            "children": [
                {
                    "name": "优点",
                    "type": "main_point",
                    "description": "节省通勤",
                    "children": [
                        {"name": "时间", "type": "evidence"},
                    ],
                },
                {"name": "结论", "type": "conclusion"},
            ],
        },
        "polishedContent": "润色后的全文。",
    }


@pytest.fixture
def mock_completion(sample_analysis: dict):
    """Patch litellm.completion to return the sample analysis."""
    with patch("miaobi.llm.client.completion") as mock:
        mock.return_value = Mock(
            choices=[Mock(message=Mock(content=json.dumps(sample_analysis)))]
        )
        yield mock
