"""
Shared fixtures. Environment is configured before quizportal is imported so
the module-level settings, engine and services pick up the test values.
"""
import io
import json
import os
import tempfile
import uuid
import zipfile
from datetime import datetime

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["LLM_API_KEY"] = "test-key"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="quizportal-uploads-")
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"
os.environ["RATE_LIMIT_LLM_PER_MINUTE"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

import docx  # noqa: E402
import fitz  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402

from quizportal.database import Base, SessionLocal, engine  # noqa: E402
from quizportal.models import MCQ, Quiz, QuizAttempt, AttemptAnswer, QuizStatus, User  # noqa: E402
from quizportal.services.llm_client import LLMClient  # noqa: E402
from quizportal.services.quiz_content_service import QuizContentService  # noqa: E402


LECTURE_PARAGRAPHS = [
    "Photosynthesis converts light energy into chemical energy stored in glucose.",
    "Chlorophyll in the chloroplasts absorbs mostly blue and red light.",
    "The Calvin cycle fixes carbon dioxide into three-carbon sugars.",
]


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(name="Student", verified=True, **fields):
        user = User(
            name=name,
            email=fields.pop("email", f"{uuid.uuid4().hex[:12]}@aut-edu.uz"),
            password_hash="not-a-real-hash",
            email_verified=verified,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("Alice")


@pytest.fixture
def make_quiz(db):
    def _make_quiz(owner, title="Biology 101", status=QuizStatus.READY.value, **fields):
        quiz = Quiz(
            user_id=owner.id,
            title=title,
            file_name=fields.pop("file_name", "lecture.docx"),
            file_url=fields.pop("file_url", "/uploads/quiz/lecture.docx"),
            status=status,
            **fields,
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        return quiz

    return _make_quiz


@pytest.fixture
def add_mcq(db):
    def _add_mcq(quiz, question, correct="A", sort_order=None):
        if sort_order is None:
            sort_order = len(quiz.mcqs)
        mcq = MCQ(
            quiz_id=quiz.id,
            question=question,
            option_a="Option A",
            option_b="Option B",
            option_c="Option C",
            option_d="Option D",
            correct_option=correct,
            sort_order=sort_order,
        )
        db.add(mcq)
        db.commit()
        db.refresh(quiz)
        return mcq

    return _add_mcq


@pytest.fixture
def add_attempt(db):
    """Store an attempt directly; outcomes is a list of (question_id, correct)"""
    def _add_attempt(owner, quiz, score, total, outcomes=(), created_at=None):
        attempt = QuizAttempt(
            user_id=owner.id,
            quiz_id=quiz.id,
            score=score,
            total_questions=total,
            created_at=created_at or datetime(2026, 10, 1, 12, 0, 0),
            answers=[
                AttemptAnswer(position=i, question_id=str(qid), selected_option="A", correct=correct)
                for i, (qid, correct) in enumerate(outcomes)
            ],
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)
        return attempt

    return _add_attempt


# Documents

def make_pdf(lines):
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "\n".join(lines), fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs):
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_pptx(slides):
    """Minimal pptx archive: one slide entry per list element, each a list of text runs"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for number, runs in enumerate(slides, start=1):
            body = "".join(f"<a:r><a:t>{run}</a:t></a:r>" for run in runs)
            archive.writestr(
                f"ppt/slides/slide{number}.xml",
                '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
                'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
                f"<p:cSld><p:spTree><p:sp><p:txBody><a:p>{body}</a:p></p:txBody></p:sp></p:spTree></p:cSld></p:sld>",
            )
    return buffer.getvalue()


# Language model doubles

def quiz_payload(flashcards=5, mcqs=5, open_questions=3):
    return {
        "flashcards": [
            {"term": f"Term {i}", "definition": f"Definition {i}"} for i in range(flashcards)
        ],
        "mcqs": [
            {
                "question": f"Question {i}?",
                "optionA": "Alpha",
                "optionB": "Beta",
                "optionC": "Gamma",
                "optionD": "Delta",
                "correctOption": "B",
            }
            for i in range(mcqs)
        ],
        "openQuestions": [
            {"question": f"Explain {i}", "modelAnswer": f"Because {i}"} for i in range(open_questions)
        ],
    }


def completion_response(content, status_code=200):
    """Factory for a fresh chat-completions response on every call"""
    if status_code != 200:
        return lambda: httpx.Response(status_code, text=content)
    return lambda: httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class RecordingTransport(httpx.MockTransport):
    """MockTransport that replays queued response factories (or raises queued errors)
    and keeps the request payloads. The last entry repeats once the queue runs dry."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.payloads = []
        super().__init__(self._handle)

    def _handle(self, request):
        self.payloads.append(json.loads(request.content))
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item()

    @property
    def calls(self):
        return len(self.payloads)


def make_llm_client(transport, max_retries=3):
    return LLMClient(
        api_url="https://llm.test/v1/chat/completions",
        api_key="test-key",
        model="test-model",
        timeout=5,
        max_retries=max_retries,
        backoff_seconds=0,
        transport=transport,
    )


@pytest.fixture
def content_service_for():
    """Build a QuizContentService whose model replies with the given responses"""
    def _build(*responses, max_retries=1):
        transport = RecordingTransport(*responses)
        service = QuizContentService(client=make_llm_client(transport, max_retries=max_retries))
        service.transport = transport
        return service

    return _build
