"""Shared pytest fixtures for all test suites."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from notra.adapters.llm.base import LLM
from notra.core.models import NoteSection, NotraSession
from notra.services import store_service
from notra.services.llm_factory import get_llm
from notra.services.usage_service import UsageMeter


class FakeLLM(LLM):
    """Records every call and answers with canned text."""

    def __init__(self, reply: str = "stub answer", chunks: list[str] | None = None, fail: bool = False):
        self.reply = reply
        self.chunks = chunks if chunks is not None else ["stub ", "answer"]
        self.fail = fail
        self.calls: list[tuple[list[dict], dict]] = []

    async def generate(self, messages, **kwargs) -> str:
        self.calls.append((messages, kwargs))
        if self.fail:
            raise RuntimeError("provider down")
        return self.reply

    async def stream_generate(self, messages, **kwargs):
        self.calls.append((messages, kwargs))
        if self.fail:
            raise RuntimeError("provider down")
        for c in self.chunks:
            yield c


@pytest.fixture
def sample_sections() -> list[NoteSection]:
    """Six sections; only the fourth one is about refunds."""
    return [
        NoteSection(id="s1", heading="Course Overview", content="This course introduces microeconomics and market structures.",
                    bullets=["Supply", "Demand", "Equilibrium"]),
        NoteSection(id="s2", heading="Grading Scheme", content="Midterm counts for thirty percent. The final exam counts for fifty percent.",
                    bullets=["Midterm 30%", "Final 50%", "Homework 20%"]),
        NoteSection(id="s3", heading="Office Hours", content="Tutors are available on Tuesday afternoons in building seven."),
        NoteSection(id="s4", heading="Refund Policy",
                    content="A refund is available in the first week. After that no refund is issued. Ask the registrar about the refund form.",
                    bullets=["Week one only", "Use the registrar form"]),
        NoteSection(id="s5", heading="Textbook", content="The required textbook is Principles of Economics, eighth edition.",
                    example="Chapter two covers opportunity cost."),
        NoteSection(id="s6", heading="Late Work", content="Late homework loses ten percent per day.",
                    bullets=["Ten percent per day"]),
    ]


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def app(fake_llm: FakeLLM):
    from notra.main import app as notra_app

    store_service.init_db()
    notra_app.dependency_overrides[get_llm] = lambda: fake_llm
    notra_app.state.usage_meter = UsageMeter()
    yield notra_app
    notra_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """Create test client."""
    yield TestClient(app)


@pytest.fixture
def stored_session(sample_sections: list[NoteSection]) -> NotraSession:
    store_service.init_db()
    return store_service.create_session(
        type="file",
        title="Econ 101 Syllabus",
        content_hash=store_service.generate_content_hash(f"syllabus-{id(sample_sections)}"),
        notes=sample_sections,
        summary_for_chat="Syllabus for an introductory economics course.",
    )
