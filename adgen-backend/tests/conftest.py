"""Pytest fixtures: in-memory job store, fake collaborators, controllable clock."""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# In-memory SQLite for the app's own engine (must be set before anything imports config)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from exceptions import InfrastructureError, StorageError
from lifecycle import JobLifecycleController
from schemas import ProductInfo
from services import PromptBuilder
from store import JobStore

import models  # noqa: F401

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeQueue:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, job_id, product_url):
        if self.fail:
            raise InfrastructureError("broker unavailable")
        self.sent.append({"job_id": job_id, "product_url": product_url})


class FakeObjectStore:
    def __init__(self):
        self.objects = {}
        self.links_issued = 0
        self.fail_upload = False
        self.fail_links = False

    def put(self, key, body, content_type, metadata):
        if self.fail_upload:
            raise StorageError(f"Failed to upload {key}: bucket unavailable")
        self.objects[key] = {"body": body, "content_type": content_type, "metadata": metadata}

    def generate_access_link(self, key, expires_in):
        if self.fail_links:
            raise StorageError(f"Failed to create access link for {key}")
        self.links_issued += 1
        return f"https://bucket.example.com/{key}?expires={expires_in}&sig={self.links_issued}"


class FakeScraper:
    def __init__(self, product=None, error=None):
        self.product = product
        self.error = error
        self.calls = []

    def scrape(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.product or ProductInfo(url=url, product_name="Widget", price="$9.99")


class FakeSynthesizer:
    def __init__(self, image=JPEG_BYTES, error=None, on_generate=None):
        self.image = image
        self.error = error
        self.on_generate = on_generate
        self.prompts = []
        self.timeouts = []

    def generate(self, prompt, timeout=None):
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        if self.on_generate:
            self.on_generate()
        if self.error:
            raise self.error
        return self.image


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory, clock):
    return JobStore(session_factory, clock=clock)


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def scraper():
    return FakeScraper()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def controller(store, queue, object_store, scraper, synthesizer, clock):
    return JobLifecycleController(
        store=store,
        queue=queue,
        object_store=object_store,
        scraper=scraper,
        synthesizer=synthesizer,
        prompt_builder=PromptBuilder(),
        clock=clock,
        deadline_seconds=870,
    )


@pytest.fixture
def submitted_job(controller):
    """A pending job for https://example.com/widget."""
    return controller.create("https://example.com/widget")
