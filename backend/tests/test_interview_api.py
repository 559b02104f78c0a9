# backend/tests/test_interview_api.py
from ai.results import AIResult


def _start(client, user, resume, headers=None):
    r = client.post(
        "/interview/start",
        json={"userId": user.id, "resumeId": resume.id},
        headers=headers or {},
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


def _answer(client, session_id, question_id, text="An answer", **extra):
    data = {"sessionId": session_id, "questionId": question_id, "responseText": text}
    data.update(extra)
    return client.post("/interview/response", data=data)


def test_start_envelope(client, ai, user, resume):
    r = client.post("/interview/start", json={"userId": user.id, "resumeId": resume.id})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["status"] == "in_progress"
    assert data["totalQuestions"] == 5
    assert [q["orderIndex"] for q in data["questions"]] == [0, 1, 2, 3, 4]
    assert all(q["audioPath"] is None for q in data["questions"])


def test_start_with_tts_adds_audio_paths(client, ai, tts, user, resume):
    data = _start(client, user, resume)
    assert all(q["audioPath"].startswith("tts/question_") for q in data["questions"])


def test_start_errors(client, ai, user, resume, make_resume):
    r = client.post("/interview/start", json={"resumeId": resume.id})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "User ID and Resume ID are required"}

    r = client.post("/interview/start", json={"userId": user.id, "resumeId": "missing"})
    assert r.status_code == 404
    assert r.json()["success"] is False

    bare = make_resume(parsed_data={"skills": []})
    r = client.post("/interview/start", json={"userId": user.id, "resumeId": bare.id})
    assert r.status_code == 400
    assert r.json()["error"] == "Resume not properly parsed"


def test_start_uses_token_user(client, ai, user, resume, auth_headers):
    r = client.post("/interview/start", json={"resumeId": resume.id}, headers=auth_headers)
    assert r.status_code == 201, r.text


def test_upstream_failure_is_generic_500(client, ai, user, resume):
    ai.questions_result = AIResult.unavailable("connect timeout to 10.0.0.3")
    r = client.post("/interview/start", json={"userId": user.id, "resumeId": resume.id})
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert "10.0.0.3" not in body["error"]
    assert "details" not in body


def test_full_flow_over_http(client, ai, user, resume):
    data = _start(client, user, resume)
    sid, questions = data["sessionId"], data["questions"]
    ai.scores = [6, 7, 8, 9, 10]

    for i, q in enumerate(questions):
        r = _answer(client, sid, q["id"], responseTimeMs="1500")
        assert r.status_code == 200, r.text
        out = r.json()["data"]
        assert out["isLastQuestion"] is (i == 4)
        if i < 4:
            assert out["nextQuestion"]["id"] == questions[i + 1]["id"]
        else:
            assert out["nextQuestion"] is None
            assert out["isComplete"] is True

    r = client.get(f"/interview/{sid}")
    assert r.status_code == 200
    detail = r.json()["data"]
    assert detail["session"]["status"] == "in_progress"
    assert detail["progress"]["isComplete"] is True
    assert detail["questions"][0]["response"]["responseTimeMs"] == 1500

    r = client.post(f"/interview/{sid}/complete")
    assert r.status_code == 200, r.text
    done = r.json()["data"]
    assert done["session"]["status"] == "completed"
    assert done["session"]["overallScore"] == 8.0
    assert done["session"]["completedAt"]
    assert done["summary"]["strengths"]

    r = client.post(f"/interview/{sid}/complete")
    assert r.status_code == 400
    assert "already completed" in r.json()["error"]


def test_duplicate_response_is_409(client, ai, user, resume):
    data = _start(client, user, resume)
    q = data["questions"][0]
    assert _answer(client, data["sessionId"], q["id"]).status_code == 200
    r = _answer(client, data["sessionId"], q["id"], text="again")
    assert r.status_code == 409
    assert r.json()["details"] == {"questionId": q["id"]}


def test_response_validation(client, ai, user, resume):
    data = _start(client, user, resume)
    r = client.post("/interview/response", data={"questionId": data["questions"][0]["id"]})
    assert r.status_code == 400
    r = _answer(client, data["sessionId"], "missing")
    assert r.status_code == 404
    r = _answer(client, data["sessionId"], data["questions"][0]["id"], text="")
    assert r.status_code == 400
    assert r.json()["error"] == "Response text is required"


def test_audio_answer_falls_back_to_text(client, ai, stt, user, resume):
    stt.error = "bad audio"
    data = _start(client, user, resume)
    q = data["questions"][0]
    r = client.post(
        "/interview/response",
        data={"sessionId": data["sessionId"], "questionId": q["id"], "responseText": "typed"},
        files={"audio": ("answer.webm", b"\x1aE\xdf\xa3webm", "audio/webm")},
    )
    assert r.status_code == 200, r.text
    detail = client.get(f"/interview/{data['sessionId']}").json()["data"]
    saved = detail["questions"][0]["response"]
    assert saved["responseText"] == "typed"
    assert saved["audioFilePath"].endswith(".webm")


def test_audio_only_failure_removes_saved_file(client, ai, stt, user, resume):
    import os
    from core.config import settings

    stt.error = "bad audio"
    data = _start(client, user, resume)
    r = client.post(
        "/interview/response",
        data={"sessionId": data["sessionId"], "questionId": data["questions"][0]["id"]},
        files={"audio": ("answer.webm", b"\x1aE\xdf\xa3webm", "audio/webm")},
    )
    assert r.status_code == 400
    folder = os.path.join(settings.audio_dir, "responses")
    assert not os.path.isdir(folder) or os.listdir(folder) == []


def test_answer_audio_must_be_audio_within_size_limit(client, ai, stt, user, resume, monkeypatch):
    import os
    from core.config import settings

    data = _start(client, user, resume)
    form = {"sessionId": data["sessionId"], "questionId": data["questions"][0]["id"], "responseText": "typed"}

    r = client.post(
        "/interview/response",
        data=form,
        files={"audio": ("payload.exe", b"MZ\x90\x00binary", "application/octet-stream")},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Only audio files are allowed"
    assert "webm" in r.json()["details"]["supportedFormats"]

    monkeypatch.setattr(settings, "max_audio_bytes", 16)
    r = client.post(
        "/interview/response",
        data=form,
        files={"audio": ("answer.wav", b"RIFF" + b"\x00" * 32, "audio/wav")},
    )
    assert r.status_code == 400
    assert r.json()["details"]["maxFileSize"] == 16

    folder = os.path.join(settings.audio_dir, "responses")
    assert not os.path.isdir(folder) or os.listdir(folder) == []
    assert stt.calls == []
    assert ai.evaluation_calls == 0
    # question is still open
    assert _answer(client, data["sessionId"], data["questions"][0]["id"]).status_code == 200


def test_cancel_then_submit_and_complete_fail(client, ai, user, resume):
    data = _start(client, user, resume)
    sid = data["sessionId"]
    r = client.post(f"/interview/{sid}/cancel")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "cancelled"

    assert _answer(client, sid, data["questions"][0]["id"]).status_code == 400
    assert client.post(f"/interview/{sid}/complete").status_code == 400
    assert client.post(f"/interview/{sid}/cancel").status_code == 400


def test_list_and_delete(client, ai, user, resume, auth_headers):
    a = _start(client, user, resume)
    b = _start(client, user, resume)
    _answer(client, a["sessionId"], a["questions"][0]["id"])

    r = client.get(f"/interview/user/{user.id}")
    assert r.status_code == 200
    items = {s["id"]: s for s in r.json()["data"]}
    assert set(items) == {a["sessionId"], b["sessionId"]}
    assert items[a["sessionId"]]["progress"]["answeredQuestions"] == 1
    assert items[a["sessionId"]]["progress"]["completionPercentage"] == 20
    assert items[a["sessionId"]]["resumeFilename"] == "resume.pdf"

    r = client.get("/interview", params={"limit": 1}, headers=auth_headers)
    assert r.status_code == 200
    assert len(r.json()["data"]) == 1

    r = client.get(f"/interview/user/{user.id}", params={"status": "completed"})
    assert r.json()["data"] == []

    r = client.delete(f"/interview/{a['sessionId']}")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert client.get(f"/interview/{a['sessionId']}").status_code == 404
    assert client.delete(f"/interview/{a['sessionId']}").status_code == 404


def test_list_bad_query_is_400(client, user):
    r = client.get(f"/interview/user/{user.id}", params={"limit": 0})
    assert r.status_code == 400
    assert r.json()["success"] is False
    r = client.get(f"/interview/user/{user.id}", params={"status": "paused"})
    assert r.status_code == 400


def test_foreign_token_cannot_read_session(client, ai, user, resume):
    from core import security

    data = _start(client, user, resume)
    stranger = {"Authorization": f"Bearer {security.create_access_token(subject='stranger')}"}
    assert client.get(f"/interview/{data['sessionId']}", headers=stranger).status_code == 404
    assert client.get(f"/interview/user/{user.id}", headers=stranger).status_code == 404
