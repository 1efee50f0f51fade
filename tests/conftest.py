"""
Shared fixtures: OpenAI-shaped fake responses, a tiny JPEG and sample records
"""
import io
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from greenthumb.models import DiagnosisResult, PlantInfo


PLANT_RECORD = {
    "name": "Monstera",
    "scientificName": "Monstera deliciosa",
    "description": "A climbing evergreen with split leaves.",
    "care": {
        "water": "Every 1-2 weeks",
        "light": "Bright indirect",
        "soil": "Well-draining aroid mix",
        "temperature": "18-27°C",
    },
    "funFact": "Its fruit tastes like a mix of banana and pineapple.",
}

SICK_RECORD = {
    "healthStatus": "Sick",
    "diagnosis": "Powdery mildew",
    "symptoms": ["White powder on leaves"],
    "treatment": ["Remove affected leaves", "Apply neem oil"],
    "prevention": "Improve air circulation.",
}

HEALTHY_RECORD = {
    "healthStatus": "Healthy",
    "diagnosis": "No issues found",
    "symptoms": [],
    "treatment": [],
    "prevention": "Keep doing what you are doing.",
}


def make_jpeg(color=(30, 140, 60), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


def make_png(color=(30, 140, 60), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color + (255,)).save(buffer, format="PNG")
    return buffer.getvalue()


def citation(url, title=None):
    return {"type": "url_citation", "url_citation": {"url": url, "title": title}}


def fake_response(content, annotations=None):
    """Chat-completions response with one choice."""
    if isinstance(content, (dict, list)):
        content = json.dumps(content)
    message = SimpleNamespace(content=content, annotations=annotations or [])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(*responses):
    """AsyncOpenAI stand-in; each call returns the next response (or raises it)."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    client.close = AsyncMock()
    return client


def sent_kwargs(client, call=-1):
    return client.chat.completions.create.await_args_list[call].kwargs


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def plant_info():
    return PlantInfo.model_validate(PLANT_RECORD)


@pytest.fixture
def sick_result():
    return DiagnosisResult.model_validate(SICK_RECORD)


@pytest.fixture
def healthy_result():
    return DiagnosisResult.model_validate(HEALTHY_RECORD)
