# backend/tests/test_session_queries.py
import pytest

from core.errors import InvalidRequest
from db import models as m
from db.models import SessionStatus
from services import session_queries


def test_progress_is_derived_from_responses(engine_factory, user, resume, db):
    engine = engine_factory()
    start = engine.start(user.id, resume.id)

    p = session_queries.progress(db, start.session_id)
    assert (p.total_questions, p.answered_questions, p.is_complete) == (5, 0, False)
    assert p.next_question_id == start.questions[0].id

    for q in start.questions:
        engine.submit_response(start.session_id, q.id, response_text="answer")
    p = session_queries.progress(db, start.session_id)
    assert (p.answered_questions, p.completion_percentage, p.is_complete) == (5, 100, True)
    assert p.next_question_id is None


def test_deleting_a_response_reopens_the_session(engine_factory, user, resume, db):
    engine = engine_factory()
    start = engine.start(user.id, resume.id)
    for q in start.questions:
        engine.submit_response(start.session_id, q.id, response_text="answer")
    assert session_queries.progress(db, start.session_id).is_complete

    db.query(m.InterviewResponse).filter_by(question_id=start.questions[2].id).delete()
    db.commit()

    p = session_queries.progress(db, start.session_id)
    assert p.is_complete is False
    assert p.next_question_id == start.questions[2].id
    assert session_queries.next_question(db, start.session_id).order_index == 2


def test_hydrate_orders_questions_and_attaches_responses(engine_factory, user, resume, db):
    engine = engine_factory()
    start = engine.start(user.id, resume.id)
    engine.submit_response(start.session_id, start.questions[1].id, response_text="second")

    detail = engine.get(start.session_id)
    assert [q.order_index for q in detail.questions] == [0, 1, 2, 3, 4]
    assert detail.questions[0].response is None
    assert detail.questions[1].response.response_text == "second"
    assert detail.progress.completion_percentage == 20

    body = detail.to_json()
    assert body["questions"][1]["response"]["responseText"] == "second"
    assert body["progress"]["nextQuestionId"] == start.questions[0].id


def test_list_user_sessions_projection(engine_factory, user, resume, make_resume, db):
    engine = engine_factory()
    a = engine.start(user.id, resume.id)
    other_resume = make_resume(filename="cv.docx")
    b = engine.start(user.id, other_resume.id)
    for q in a.questions[:2]:
        engine.submit_response(a.session_id, q.id, response_text="answer")
    engine.cancel(b.session_id)

    items = {s.id: s for s in session_queries.list_user_sessions(db, user.id)}
    assert set(items) == {a.session_id, b.session_id}

    pa = items[a.session_id].progress
    assert (pa.total_questions, pa.answered_questions, pa.completion_percentage) == (5, 2, 40)
    assert pa.next_question_id == a.questions[2].id
    assert items[a.session_id].resume_filename == "resume.pdf"
    assert items[b.session_id].resume_filename == "cv.docx"
    assert items[b.session_id].status == SessionStatus.cancelled


def test_list_user_sessions_filters_and_pages(engine_factory, user, resume, db):
    engine = engine_factory()
    ids = [engine.start(user.id, resume.id).session_id for _ in range(3)]
    engine.cancel(ids[0])

    cancelled = session_queries.list_user_sessions(db, user.id, status="cancelled")
    assert [s.id for s in cancelled] == [ids[0]]

    page = session_queries.list_user_sessions(db, user.id, limit=2, offset=0)
    rest = session_queries.list_user_sessions(db, user.id, limit=2, offset=2)
    assert len(page) == 2 and len(rest) == 1
    assert {s.id for s in page + rest} == set(ids)

    assert session_queries.list_user_sessions(db, "nobody") == []
    with pytest.raises(InvalidRequest):
        session_queries.list_user_sessions(db, user.id, status="paused")
