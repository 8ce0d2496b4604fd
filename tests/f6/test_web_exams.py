"""Tests for exam endpoints."""

from studyhub.llm.client import LLMConnectionError


class TestListExams:
    def test_learner_sees_grade_exams(self, client, learner, exam):
        data = client.get("/api/exams", params={"user_id": learner.id}).json()

        assert data["count"] == 1
        question = data["exams"][0]["questions"][0]
        assert question["options"][1] == "Chloroplast"
        assert "correct_answer" not in question

    def test_other_grade(self, client, services, make_account, exam):
        services.store.upsert("users", make_account("u4", current_grade="Form 4"))

        assert client.get("/api/exams", params={"user_id": "u4"}).json()["count"] == 0

    def test_unknown_user(self, client):
        assert client.get("/api/exams", params={"user_id": "ghost"}).status_code == 404


class TestSubmitExam:
    def test_submit(self, client, llm_client, learner, exam):
        llm_client.generate.return_value = {
            "score": 100,
            "feedback": {"1": {"is_correct": True, "tip": "Correct", "correct_answer": "Chloroplast"}},
        }

        response = client.post(
            f"/api/exams/{exam.id}/submit",
            json={"user_id": learner.id, "answers": {"1": "Chloroplast"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["passed"] is True
        assert data["feedback"]["1"]["is_correct"] is True

    def test_marking_unavailable(self, client, services, llm_client, learner, exam):
        llm_client.generate.side_effect = LLMConnectionError("down")

        response = client.post(
            f"/api/exams/{exam.id}/submit",
            json={"user_id": learner.id, "answers": {"1": "Nucleus"}},
        )

        assert response.status_code == 502
        assert services.exams.results_for(learner.id) == []

    def test_unknown_exam(self, client, learner):
        response = client.post(
            "/api/exams/nope/submit", json={"user_id": learner.id, "answers": {}}
        )
        assert response.status_code == 404
