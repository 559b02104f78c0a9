# backend/tests/test_evaluation.py
import pytest
from sqlalchemy import func, select

from core.errors import InvalidRequest, InvalidState
from db import models as m
from services import evaluation


def _audio(tmp_path, name="answer.webm"):
    p = tmp_path / name
    p.write_bytes(b"\x1aE\xdf\xa3" + b"0" * 64)
    return str(p)


# ---------- text resolution ----------
def test_transcript_wins_over_typed_text(stt, tmp_path):
    text = evaluation.resolve_response_text(stt, "typed", _audio(tmp_path), question_id="q1")
    assert text == stt.text
    assert len(stt.calls) == 1


def test_failed_transcription_falls_back_to_text(stt, tmp_path):
    stt.error = "decoder exploded"
    text = evaluation.resolve_response_text(stt, "  typed answer ", _audio(tmp_path), question_id="q1")
    assert text == "typed answer"


def test_whitespace_transcription_counts_as_none(stt, tmp_path):
    stt.text = "   \n"
    assert evaluation.resolve_response_text(stt, "typed", _audio(tmp_path), question_id="q1") == "typed"


def test_failed_transcription_without_text_is_invalid_request(stt, tmp_path):
    stt.error = "timeout"
    with pytest.raises(InvalidRequest):
        evaluation.resolve_response_text(stt, None, _audio(tmp_path), question_id="q1")


def test_no_audio_skips_stt(stt):
    assert evaluation.resolve_response_text(stt, "typed", None, question_id="q1") == "typed"
    assert stt.calls == []


def test_resume_context_requires_parse():
    with pytest.raises(InvalidState):
        evaluation.resume_context(None)
    with pytest.raises(InvalidState):
        evaluation.resume_context(m.Resume(parsed_data=None))
    skills, work = evaluation.resume_context(
        m.Resume(parsed_data={"skills": ["go", 3], "workExperience": [{"title": "x"}, "junk"]})
    )
    assert skills == ["go"]
    assert work == [{"title": "x"}]


# ---------- through the engine ----------
def test_submit_with_failing_audio_and_text_succeeds(engine_factory, stt, user, resume, db, tmp_path):
    stt.error = "unreadable container"
    engine = engine_factory()
    start = engine.start(user.id, resume.id)
    audio = _audio(tmp_path)

    res = engine.submit_response(
        start.session_id, start.questions[0].id, response_text="My typed answer", audio_path=audio
    )
    row = db.get(m.InterviewResponse, res.response_id)
    assert row.response_text == "My typed answer"
    assert row.audio_file_path == audio
    assert row.score is not None


def test_submit_with_failing_audio_only_is_invalid_request(engine_factory, stt, user, resume, db, tmp_path):
    stt.error = "unreadable container"
    engine = engine_factory()
    start = engine.start(user.id, resume.id)
    with pytest.raises(InvalidRequest):
        engine.submit_response(start.session_id, start.questions[0].id, audio_path=_audio(tmp_path))
    assert db.execute(select(func.count(m.InterviewResponse.id))).scalar() == 0


def test_submit_stores_transcript_and_response_time(engine_factory, stt, user, resume, db, tmp_path):
    engine = engine_factory()
    start = engine.start(user.id, resume.id)
    res = engine.submit_response(
        start.session_id,
        start.questions[0].id,
        audio_path=_audio(tmp_path),
        response_time_ms=4200,
    )
    row = db.get(m.InterviewResponse, res.response_id)
    assert row.response_text == stt.text
    assert row.response_time_ms == 4200
    assert row.ai_evaluation["overallScore"] == row.score
