from types import SimpleNamespace

import pytest

from lms import models, scoring


def make_quiz(client, headers, questions=5, **fields):
    body = {"title": "Kinematics check", "duration_minutes": 15, "status": "published", **fields}
    quiz = client.post("/api/quizzes", json=body, headers=headers).json()
    for n in range(questions):
        if quiz["type"] == "SHORT_ANSWER":
            q = {"text": f"Define term {n}", "expected_answer": f"Answer {n}", "topic": "terms"}
        else:
            q = {"text": f"Question {n}", "options": ["a", "b", "c"], "correct_option_index": 0,
                 "slo_tag": "SLO-1" if n < 3 else "SLO-2", "topic": "motion"}
        resp = client.post(f"/api/quizzes/{quiz['id']}/questions", json=q, headers=headers)
        assert resp.status_code == 201
    return quiz


def question_ids(client, quiz_id, headers):
    return [q["id"] for q in client.get(f"/api/quizzes/{quiz_id}/questions", headers=headers).json()]


def answers(ids, right):
    return [{"question_id": qid, "selected_option_index": 0 if i < right else 1} for i, qid in enumerate(ids)]


# --- 评分 ---

def test_percentage():
    assert scoring.percentage(3, 5) == 60.0
    assert scoring.percentage(1, 3) == 33.33
    assert scoring.percentage(0, 0) == 0.0


def test_normalize_answer():
    assert scoring.normalize_answer("  Newton's   First Law ") == "newton's first law"
    assert scoring.normalize_answer(None) == ""


def test_grade_skips_unknown_and_repeated_questions():
    questions = [SimpleNamespace(id=1, correct_option_index=2), SimpleNamespace(id=2, correct_option_index=0)]
    given = [SimpleNamespace(question_id=1, selected_option_index=2, answer_text=None),
             SimpleNamespace(question_id=1, selected_option_index=0, answer_text=None),
             SimpleNamespace(question_id=99, selected_option_index=0, answer_text=None),
             SimpleNamespace(question_id=2, selected_option_index=None, answer_text=None)]
    score, rows = scoring.grade("MCQ", questions, given)
    assert score == 1
    assert [(q.id, correct) for q, _, correct in rows] == [(1, True), (2, False)]


def test_short_answer_needs_expected_text():
    question = SimpleNamespace(expected_answer=None)
    answer = SimpleNamespace(answer_text="")
    assert scoring.is_correct("SHORT_ANSWER", question, answer) is False


@pytest.mark.parametrize("attempt,expected", [(None, "not_started"), (object(), "completed")])
def test_attempt_status(attempt, expected):
    assert scoring.attempt_status(attempt) == expected


# --- 接口 ---

def test_three_of_five_scores_sixty(client, admin, student):
    quiz = make_quiz(client, admin["headers"])
    ids = question_ids(client, quiz["id"], admin["headers"])

    detail = client.get(f"/api/quizzes/{quiz['id']}", headers=student["headers"]).json()
    assert detail["attempt_status"] == "not_started"
    assert len(detail["questions"]) == 5
    assert "correct_option_index" not in detail["questions"][0]

    resp = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=student["headers"],
                       json={"answers": answers(ids, 3)})
    assert resp.status_code == 201
    assert resp.json()["score"] == 3
    assert resp.json()["total"] == 5
    assert resp.json()["percentage"] == 60.0

    detail = client.get(f"/api/quizzes/{quiz['id']}", headers=student["headers"]).json()
    assert detail["attempt_status"] == "completed"
    assert detail["attempt"]["score"] == 3
    assert detail["attempt"]["quiz_title"] == "Kinematics check"

    mine = client.get(f"/api/quizzes/{quiz['id']}/my-attempt", headers=student["headers"]).json()
    assert [r["correct"] for r in mine["quiz_results"]] == [True, True, True, False, False]


def test_second_attempt_is_rejected(client, admin, student):
    quiz = make_quiz(client, admin["headers"], questions=2)
    ids = question_ids(client, quiz["id"], admin["headers"])
    url = f"/api/quizzes/{quiz['id']}/attempts"
    assert client.post(url, headers=student["headers"], json={"answers": answers(ids, 0)}).status_code == 201
    resp = client.post(url, headers=student["headers"], json={"answers": answers(ids, 2)})
    assert resp.status_code == 403
    assert resp.json() == {"message": "You have already attempted this quiz"}
    assert client.get("/api/results/students/me/attempts", headers=student["headers"]).json()["total"] == 1


def test_drafts_are_hidden_from_students(client, admin, student):
    draft = make_quiz(client, admin["headers"], questions=1, status="draft", title="Draft quiz")
    make_quiz(client, admin["headers"], questions=1, title="Live quiz")

    listed = client.get("/api/quizzes", headers=student["headers"]).json()
    assert [q["title"] for q in listed["data"]] == ["Live quiz"]
    assert client.get(f"/api/quizzes/{draft['id']}", headers=student["headers"]).status_code == 404
    resp = client.post(f"/api/quizzes/{draft['id']}/attempts", headers=student["headers"], json={"answers": []})
    assert resp.status_code == 403
    assert resp.json() == {"message": "Quiz not available"}

    assert client.get("/api/quizzes", headers=admin["headers"]).json()["total"] == 2
    drafts = client.get("/api/quizzes", params={"status": "draft"}, headers=admin["headers"]).json()
    assert [q["id"] for q in drafts["data"]] == [draft["id"]]


def test_publishing_a_draft_notifies_students(client, admin, student):
    draft = make_quiz(client, admin["headers"], questions=1, status="draft")
    before = client.get("/api/notifications/me", headers=student["headers"]).json()["total"]
    client.patch(f"/api/quizzes/{draft['id']}", json={"status": "published"}, headers=admin["headers"])
    after = client.get("/api/notifications/me", headers=student["headers"]).json()
    assert after["total"] == before + 1
    assert after["data"][0]["type"] == "quiz_published"


def test_deadline_is_enforced(client, admin, student):
    quiz = make_quiz(client, admin["headers"], questions=1, deadline="2020-01-01T00:00:00Z")
    resp = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=student["headers"], json={"answers": []})
    assert resp.status_code == 403
    assert resp.json() == {"message": "Quiz deadline has passed"}


def test_only_students_submit(client, admin):
    quiz = make_quiz(client, admin["headers"], questions=1)
    resp = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=admin["headers"], json={"answers": []})
    assert resp.status_code == 403


def test_short_answer_quiz(client, admin, student, premium_student, set_premium):
    quiz = make_quiz(client, admin["headers"], questions=2, type="SHORT_ANSWER")
    ids = question_ids(client, quiz["id"], admin["headers"])
    given = {"answers": [{"question_id": ids[0], "answer_text": "  answer 0 "},
                         {"question_id": ids[1], "answer_text": "something else"}]}

    set_premium("shortAnswerQuiz")
    resp = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=student["headers"], json=given)
    assert resp.status_code == 403
    assert resp.json()["code"] == "PREMIUM_REQUIRED"

    resp = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=premium_student["headers"], json=given)
    assert resp.status_code == 201
    assert resp.json()["score"] == 1
    assert resp.json()["percentage"] == 50.0


def test_mcq_question_validation(client, admin):
    quiz = make_quiz(client, admin["headers"], questions=0)
    url = f"/api/quizzes/{quiz['id']}/questions"
    resp = client.post(url, headers=admin["headers"], json={"text": "Q", "options": ["only"], "correct_option_index": 0})
    assert resp.status_code == 400
    resp = client.post(url, headers=admin["headers"], json={"text": "Q", "options": ["a", "b"], "correct_option_index": 2})
    assert resp.status_code == 400


def test_premium_quizzes_gate(client, admin, student, set_premium):
    make_quiz(client, admin["headers"], questions=1)
    set_premium("quizzes")
    resp = client.get("/api/quizzes", headers=student["headers"])
    assert resp.status_code == 403
    assert resp.json()["code"] == "PREMIUM_REQUIRED"


def test_result_notification_and_attempt_details(client, admin, student):
    quiz = make_quiz(client, admin["headers"], questions=2)
    ids = question_ids(client, quiz["id"], admin["headers"])
    attempt = client.post(f"/api/quizzes/{quiz['id']}/attempts", headers=student["headers"],
                          json={"answers": answers(ids, 1)}).json()

    inbox = client.get("/api/notifications/me", headers=student["headers"]).json()["data"]
    assert inbox[0]["title"] == "Result Published"
    assert inbox[0]["to_user_id"] == student["id"]

    details = client.get(f"/api/results/attempts/{attempt['attempt_id']}/details",
                         headers=student["headers"]).json()
    assert details["attempt"]["percentage"] == 50.0
    assert details["quiz_results"][0]["question"]["correct_option_index"] == 0

    other = client.post("/api/auth/register", json={"name": "Other", "email": "other@school.org",
                                                    "password": "secret123"}).json()
    resp = client.get(f"/api/results/attempts/{attempt['attempt_id']}",
                      headers={"Authorization": f"Bearer {other['token']}"})
    assert resp.status_code == 403
    assert client.get(f"/api/results/attempts/{attempt['attempt_id']}", headers=admin["headers"]).status_code == 200


def test_admin_quiz_detail_includes_answers(client, admin):
    quiz = make_quiz(client, admin["headers"], questions=2)
    detail = client.get(f"/api/quizzes/{quiz['id']}", headers=admin["headers"]).json()
    assert [q["text"] for q in detail["questions"]] == ["Question 0", "Question 1"]
    assert detail["questions"][0]["correct_option_index"] == 0
    assert detail["questions"][0]["quiz_id"] == quiz["id"]
    assert detail["attempt_status"] is None


def test_null_updates_are_rejected(client, admin):
    quiz = make_quiz(client, admin["headers"], questions=0)
    url = f"/api/quizzes/{quiz['id']}"
    for field in ("title", "status", "duration_minutes"):
        resp = client.patch(url, json={field: None}, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["message"].startswith(f"{field}:")
    resp = client.patch(url, json={"title": "Renamed", "deadline": None}, headers=admin["headers"])
    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"


def test_deleting_quiz_removes_its_questions(client, admin, db):
    quiz = make_quiz(client, admin["headers"], questions=3)
    resp = client.delete(f"/api/quizzes/{quiz['id']}", headers=admin["headers"])
    assert resp.json() == {"message": "Deleted"}
    assert db.query(models.Question).filter(models.Question.quiz_id == quiz["id"]).count() == 0
    assert client.get(f"/api/quizzes/{quiz['id']}", headers=admin["headers"]).status_code == 404
    assert client.delete(f"/api/quizzes/{quiz['id']}", headers=admin["headers"]).status_code == 404
