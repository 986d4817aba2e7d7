import os

# must be set before config.py is imported
os.environ.setdefault("OPENROUTER_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from resume_store import ResumeRepository, ResumeState


class FakeModel:
    """Stands in for llm_client.complete; records calls, replays canned replies."""

    def __init__(self):
        self.calls = []
        self.reply = "{}"

    def reply_json(self, payload):
        self.reply = "```json\n" + json.dumps(payload) + "\n```"

    def __call__(self, operation, prompt, file_bytes=None, mime_type=None, filename=None):
        self.calls.append(
            {
                "operation": operation,
                "prompt": prompt,
                "file_bytes": file_bytes,
                "mime_type": mime_type,
                "filename": filename,
            }
        )
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def fake_model(monkeypatch):
    fake = FakeModel()
    monkeypatch.setattr(main, "complete", fake)
    return fake


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def repository():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return ResumeRepository(session_factory=factory)


@pytest.fixture
def state():
    return ResumeState()
