"""Tests for quiz retrieval, grading and results."""

import uuid

import pytest

from fintrek.learning.quiz_engine import QuizSubmissionError, grade_answers, result_activity
from fintrek.models.learning import QuizQuestion

# Correct answers of the seeded daily quiz
DAILY_ANSWERS = [1, 1, 1, 2, 1]


def make_questions(correct_answers):
    return [
        QuizQuestion(
            id=uuid.uuid4(),
            question=f"Question {idx}",
            options=["a", "b", "c", "d"],
            correct_answer=answer,
            explanation=f"Because {answer}",
            order_index=idx,
        )
        for idx, answer in enumerate(correct_answers)
    ]


class TestGradeAnswers:
    """Tests for grade_answers."""

    def test_all_correct(self):
        score, results = grade_answers(make_questions([0, 1, 2]), [0, 1, 2])
        assert score == 3
        assert all(r["is_correct"] for r in results)

    def test_missing_and_null_answers_are_wrong(self):
        score, results = grade_answers(make_questions([0, 1, 2]), [0, None])
        assert score == 1
        assert [r["selected_answer"] for r in results] == [0, None, None]
        assert [r["is_correct"] for r in results] == [True, False, False]

    def test_out_of_range_answer_is_wrong(self):
        score, results = grade_answers(make_questions([0]), [7])
        assert score == 0
        assert results[0]["selected_answer"] is None

    def test_too_many_answers_rejected(self):
        with pytest.raises(QuizSubmissionError):
            grade_answers(make_questions([0]), [0, 1])

    def test_result_activity_text(self):
        assert result_activity(5, 5) == "Perfect score on quiz"
        assert result_activity(3, 5) == "Completed quiz with 3/5 correct"


class TestGetQuiz:
    """Tests for GET /api/quizzes/daily and /api/quizzes/{id}."""

    async def test_daily_quiz_hides_answers(self, client, catalog):
        response = await client.get("/api/quizzes/daily")
        assert response.status_code == 200
        quiz = response.json()
        assert quiz["title"] == "Daily Financial Quiz"
        assert quiz["is_daily"] is True
        assert quiz["points_per_question"] == 50
        assert len(quiz["questions"]) == 5
        assert [q["order_index"] for q in quiz["questions"]] == [0, 1, 2, 3, 4]
        assert "correct_answer" not in quiz["questions"][0]
        assert "explanation" not in quiz["questions"][0]

    async def test_quiz_by_id_and_daily_alias(self, client, catalog):
        daily = (await client.get("/api/quizzes/daily")).json()

        by_id = await client.get(f"/api/quizzes/{daily['id']}")
        assert by_id.status_code == 200
        assert by_id.json()["id"] == daily["id"]

    async def test_unknown_quiz_is_404(self, client, catalog):
        response = await client.get(f"/api/quizzes/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"error": "Quiz not found"}

    async def test_malformed_id_is_404(self, client, catalog):
        response = await client.get("/api/quizzes/not-a-quiz")
        assert response.status_code == 404

    async def test_no_daily_quiz_is_404(self, client):
        response = await client.get("/api/quizzes/daily")
        assert response.status_code == 404


class TestSubmitQuiz:
    """Tests for POST /api/quizzes/{id}/submit."""

    async def test_perfect_score(self, client, catalog, user):
        response = await client.post(
            "/api/quizzes/daily/submit", headers=user["headers"], json={"answers": DAILY_ANSWERS}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 5
        assert data["total_questions"] == 5
        assert data["percentage"] == 100
        assert data["perfect"] is True
        assert data["points_earned"] == 250
        assert data["total_points"] == 250
        assert all(r["is_correct"] for r in data["results"])
        assert data["results"][0]["explanation"]

    async def test_partial_score(self, client, catalog, user):
        answers = [1, 0, 1, None]
        response = await client.post(
            "/api/quizzes/daily/submit", headers=user["headers"], json={"answers": answers}
        )
        data = response.json()
        assert data["score"] == 2
        assert data["percentage"] == 40
        assert data["perfect"] is False
        assert data["points_earned"] == 100

        activity = (await client.get("/api/gamification/activity", headers=user["headers"])).json()
        assert activity[0]["activity"] == "Completed quiz with 2/5 correct"
        assert activity[0]["activity_type"] == "quiz"

    async def test_zero_score_awards_nothing(self, client, catalog, user):
        response = await client.post(
            "/api/quizzes/daily/submit", headers=user["headers"], json={"answers": [0, 0, 0, 0, 0]}
        )
        data = response.json()
        assert data["score"] == 0
        assert data["points_earned"] == 0
        assert data["total_points"] == 0

        activity = (await client.get("/api/gamification/activity", headers=user["headers"])).json()
        assert activity == []

    async def test_too_many_answers_is_400(self, client, catalog, user):
        response = await client.post(
            "/api/quizzes/daily/submit", headers=user["headers"], json={"answers": [1] * 6}
        )
        assert response.status_code == 400

    async def test_requires_auth(self, client, catalog):
        response = await client.post("/api/quizzes/daily/submit", json={"answers": DAILY_ANSWERS})
        assert response.status_code == 401


class TestQuizResults:
    """Tests for GET /api/quizzes/results."""

    async def test_results_newest_first(self, client, catalog, user):
        await client.post("/api/quizzes/daily/submit", headers=user["headers"], json={"answers": [1]})
        await client.post("/api/quizzes/daily/submit", headers=user["headers"], json={"answers": DAILY_ANSWERS})

        response = await client.get("/api/quizzes/results", headers=user["headers"])
        assert response.status_code == 200
        results = response.json()
        assert [r["score"] for r in results] == [5, 1]

    async def test_results_are_private(self, client, catalog, user, register):
        other = await register(email="bob@example.com")
        await client.post("/api/quizzes/daily/submit", headers=other["headers"], json={"answers": DAILY_ANSWERS})

        response = await client.get("/api/quizzes/results", headers=user["headers"])
        assert response.json() == []
