"""Tests for learning modules, lesson completion and levels."""

import uuid

import pytest
from sqlalchemy import select

from fintrek.gamification.levels import level_for_lessons, next_level_name
from fintrek.models.gamification import UserActivity


async def modules_by_title(client, headers=None):
    response = await client.get("/api/learning/modules", headers=headers or {})
    assert response.status_code == 200
    return {module["title"]: module for module in response.json()}


def lesson_url(module_id, lesson_number):
    return f"/api/learning/modules/{module_id}/lessons/{lesson_number}/complete"


class TestLevels:
    """Tests for the level ladder."""

    @pytest.mark.parametrize("lessons,level,progress", [
        (0, "Beginner Trader", 0),
        (3, "Beginner Trader", 20),
        (15, "Intermediate Trader", 0),
        (20, "Intermediate Trader", 33),
        (30, "Advanced Trader", 0),
        (44, "Advanced Trader", 93),
        (45, "Expert Trader", 100),
        (60, "Expert Trader", 100),
    ])
    def test_level_for_lessons(self, lessons, level, progress):
        status = level_for_lessons(lessons)
        assert status.current_level == level
        assert status.next_level_progress == progress

    def test_next_level_name(self):
        assert next_level_name("Beginner Trader") == "Intermediate Trader"
        assert next_level_name("Expert Trader") is None
        assert next_level_name("Unknown") is None


class TestListModules:
    """Tests for GET /api/learning/modules."""

    async def test_anonymous_listing_in_order(self, client, catalog):
        response = await client.get("/api/learning/modules")
        assert response.status_code == 200
        modules = response.json()
        assert [m["title"] for m in modules] == [
            "Financial Fundamentals", "Investment Basics", "Trading Strategies", "Portfolio Management"
        ]
        assert sum(m["lessons"] for m in modules) == 45
        assert all(m["completed_lessons"] == 0 for m in modules)
        assert modules[0]["topics"] == ["Budgeting", "Saving", "Emergency Funds", "Financial Goals"]
        assert modules[3]["is_unlocked"] is False

    async def test_listing_includes_caller_progress(self, client, catalog, user):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        await client.post(lesson_url(module["id"], 1), headers=user["headers"])

        modules = await modules_by_title(client, user["headers"])
        assert modules["Financial Fundamentals"]["completed_lessons"] == 1
        assert modules["Investment Basics"]["completed_lessons"] == 0

    async def test_get_single_module(self, client, catalog):
        module = (await modules_by_title(client))["Investment Basics"]
        response = await client.get(f"/api/learning/modules/{module['id']}")
        assert response.status_code == 200
        assert response.json()["lessons"] == 12

    async def test_unknown_module_is_404(self, client, catalog):
        response = await client.get(f"/api/learning/modules/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"error": "Module not found"}


class TestCompleteLesson:
    """Tests for POST /api/learning/modules/{id}/lessons/{n}/complete."""

    async def test_first_lesson_awards_points_and_achievement(self, client, catalog, user):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        response = await client.post(lesson_url(module["id"], 1), headers=user["headers"])

        assert response.status_code == 200
        data = response.json()
        assert data["completed_lessons"] == 1
        assert data["already_completed"] is False
        assert data["module_completed"] is False
        assert data["points_awarded"] == 100
        assert data["total_points"] == 100
        assert data["current_level"] == "Beginner Trader"
        assert data["next_level_progress"] == 7
        assert [a["title"] for a in data["earned_achievements"]] == ["First Steps"]

    async def test_recompletion_is_noop(self, client, catalog, user):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        await client.post(lesson_url(module["id"], 1), headers=user["headers"])

        response = await client.post(lesson_url(module["id"], 1), headers=user["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["already_completed"] is True
        assert data["points_awarded"] == 0
        assert data["total_points"] == 100
        assert data["earned_achievements"] == []

    async def test_skipping_ahead_conflicts(self, client, catalog, user):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        response = await client.post(lesson_url(module["id"], 3), headers=user["headers"])
        assert response.status_code == 409
        assert response.json() == {"error": "Complete previous lessons first"}

    async def test_lesson_out_of_range(self, client, catalog, user):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        response = await client.post(lesson_url(module["id"], 9), headers=user["headers"])
        assert response.status_code == 400

    async def test_locked_module_forbidden(self, client, catalog, user):
        module = (await modules_by_title(client))["Portfolio Management"]
        response = await client.post(lesson_url(module["id"], 1), headers=user["headers"])
        assert response.status_code == 403
        assert response.json() == {"error": "Module is locked"}

    async def test_unknown_module(self, client, catalog, user):
        response = await client.post(lesson_url(uuid.uuid4(), 1), headers=user["headers"])
        assert response.status_code == 404

    async def test_requires_auth(self, client, catalog):
        module = (await modules_by_title(client))["Financial Fundamentals"]
        response = await client.post(lesson_url(module["id"], 1))
        assert response.status_code == 401

    async def test_finishing_module_awards_bonus(self, client, catalog, user, db):
        """The last lesson adds the module bonus on top of the lesson points."""
        module = (await modules_by_title(client))["Financial Fundamentals"]
        for lesson in range(1, 8):
            await client.post(lesson_url(module["id"], lesson), headers=user["headers"])

        response = await client.post(lesson_url(module["id"], 8), headers=user["headers"])
        data = response.json()
        assert data["module_completed"] is True
        assert data["points_awarded"] == 300
        assert data["total_points"] == 1000

        activities = (await db.execute(
            select(UserActivity.activity_type).where(UserActivity.user_id == uuid.UUID(user["uid"]))
        )).scalars().all()
        assert activities.count("lesson") == 8
        assert activities.count("module") == 1
        assert "achievement" in activities


class TestOverallProgress:
    """Tests for GET /api/learning/progress."""

    async def test_progress_counts_lessons_and_hours(self, client, catalog, user):
        modules = await modules_by_title(client)
        fundamentals = modules["Financial Fundamentals"]["id"]
        investing = modules["Investment Basics"]["id"]
        for lesson in (1, 2, 3):
            await client.post(lesson_url(fundamentals, lesson), headers=user["headers"])
        for lesson in (1, 2):
            await client.post(lesson_url(investing, lesson), headers=user["headers"])

        response = await client.get("/api/learning/progress", headers=user["headers"])
        assert response.status_code == 200
        assert response.json() == {
            "overall_completion": 11,
            "lessons_completed": 5,
            "hours_studied": 2,
        }

    async def test_fresh_user_has_no_progress(self, client, catalog, user):
        response = await client.get("/api/learning/progress", headers=user["headers"])
        assert response.json() == {"overall_completion": 0, "lessons_completed": 0, "hours_studied": 0}
