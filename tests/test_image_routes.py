import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from persona import create_app
from persona.config import TestConfig
from persona.images import routes as image_routes
from persona.services.image_generation import GeneratedImage, ImageProviderError


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


class StaticProvider:
    def __init__(self, name, outcome):
        self.name = name
        self.outcome = outcome
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return GeneratedImage(image_url=self.outcome, prompt=prompt, source=self.name)


CHARACTER = {"name": "Alex", "appearance": {"gender": "남성", "age": "25세", "hairColor": "금발"}}


def test_generate_image_requires_character(client):
    response = client.post("/generate-image", json={"style": "cartoon"})

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_generate_image_falls_back_to_placeholder(client):
    response = client.post("/generate-image", json={"characterInfo": CHARACTER})

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["source"] == "placeholder"
    assert data["imageUrl"].startswith("https://ui-avatars.com/api/?name=Alex&")


def test_generate_image_uses_first_working_provider(client, monkeypatch):
    failing = StaticProvider("replicate", ImageProviderError("quota exceeded"))
    local = StaticProvider("local", "data:image/png;base64,abc")
    monkeypatch.setattr(image_routes, "build_image_providers", lambda config: [failing, local])

    response = client.post(
        "/generate-image", json={"characterInfo": CHARACTER, "style": "unknown-style", "mood": "happy"}
    )

    data = response.get_json()
    assert data["imageUrl"] == "data:image/png;base64,abc"
    assert data["source"] == "local"
    assert "handsome male man" in data["prompt"]
    assert "adult person" in data["prompt"]
    assert failing.prompts == local.prompts


def test_generate_image_unexpected_error_returns_500(client, monkeypatch):
    def explode(config):
        raise RuntimeError("provider setup failed")

    monkeypatch.setattr(image_routes, "build_image_providers", explode)

    response = client.post("/generate-image", json={"characterInfo": CHARACTER})

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "error": "provider setup failed"}


def test_image_capabilities(client):
    response = client.get("/generate-image")

    data = response.get_json()
    assert data["availableStyles"] == ["caricature", "cartoon", "realistic"]
    assert data["availableMoods"] == ["happy", "serious", "friendly", "professional"]
    assert data["requirements"]["replicateApiToken"] is False
    assert data["requirements"]["localStableDiffusion"] == "disabled"


@pytest.mark.parametrize("body", [[1, 2], "hello", 5])
def test_generate_image_rejects_non_object_body(client, body):
    response = client.post("/generate-image", json=body)

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_generate_image_accepts_empty_character(client):
    response = client.post("/generate-image", json={"characterInfo": {}})

    assert response.status_code == 200
    data = response.get_json()
    assert data["source"] == "placeholder"
    assert "name=unknown&" in data["imageUrl"]
