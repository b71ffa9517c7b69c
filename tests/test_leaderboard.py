"""Tests for the points and streak leaderboards."""

from datetime import datetime, timedelta
import uuid

from fintrek.gamification.leaderboard import LeaderboardService, competition_ranks
from fintrek.learning.progress_tracker import ProgressTracker
from fintrek.models.gamification import Points
from fintrek.models.user import Profile, User


async def add_player(db, name, total_points, current_streak=0, last_active_days_ago=0):
    user = User(
        email=f"{name.lower()}@example.com",
        hashed_password="x",
        first_name=name,
        last_name="Player",
    )
    db.add(user)
    await db.flush()
    db.add(Profile(id=user.id, name=name, avatar_url=f"https://example.com/{name}.png"))
    db.add(Points(
        user_id=user.id,
        total_points=total_points,
        current_streak=current_streak,
        longest_streak=current_streak,
        last_activity_date=datetime.utcnow().date() - timedelta(days=last_active_days_ago),
    ))
    await db.commit()
    return user.id


class TestCompetitionRanks:
    """Tests for competition_ranks."""

    def test_ties_share_rank(self):
        assert competition_ranks([500, 300, 300, 100]) == [1, 2, 2, 4]

    def test_empty(self):
        assert competition_ranks([]) == []


class TestLeaderboardService:
    """Tests for LeaderboardService."""

    async def test_top_by_points_with_profiles(self, db, cache):
        await add_player(db, "Ann", 900)
        await add_player(db, "Ben", 400)
        await add_player(db, "Cat", 400)

        board = await LeaderboardService(db, cache).top_by_points(10)

        assert [row["profile"]["name"] for row in board] == ["Ann", "Ben", "Cat"]
        assert [row["rank"] for row in board] == [1, 2, 2]
        assert board[0]["profile"]["avatar_url"] == "https://example.com/Ann.png"

    async def test_limit(self, db, cache):
        for idx in range(5):
            await add_player(db, f"P{idx}", idx * 10)
        board = await LeaderboardService(db, cache).top_by_points(3)
        assert [row["total_points"] for row in board] == [40, 30, 20]

    async def test_results_are_cached(self, db, cache):
        await add_player(db, "Ann", 900)
        service = LeaderboardService(db, cache)
        await service.top_by_points(10)

        await add_player(db, "Ben", 1000)
        board = await service.top_by_points(10)
        assert [row["profile"]["name"] for row in board] == ["Ann"]

    async def test_user_rank_counts_strictly_higher(self, db, cache):
        await add_player(db, "Ann", 900)
        ben = await add_player(db, "Ben", 400)
        cat = await add_player(db, "Cat", 400)

        service = LeaderboardService(db, cache)
        assert (await service.user_rank(ben))["rank"] == 2
        assert (await service.user_rank(cat))["rank"] == 2
        assert await service.user_rank(uuid.uuid4()) is None

    async def test_streaks_exclude_broken(self, db, cache):
        await add_player(db, "Ann", 100, current_streak=3)
        await add_player(db, "Ben", 100, current_streak=9, last_active_days_ago=1)
        await add_player(db, "Cat", 100, current_streak=20, last_active_days_ago=4)
        await add_player(db, "Dan", 100, current_streak=0)

        board = await LeaderboardService(db, cache).top_by_streak(10)
        assert [(row["profile"]["name"], row["current_streak"]) for row in board] == [("Ben", 9), ("Ann", 3)]

    async def test_points_board_zeroes_broken_streaks(self, db, cache):
        ann = await add_player(db, "Ann", 300, current_streak=9, last_active_days_ago=10)
        await add_player(db, "Ben", 200, current_streak=4, last_active_days_ago=1)

        service = LeaderboardService(db, cache)
        board = await service.top_by_points(10)
        assert [(row["profile"]["name"], row["current_streak"]) for row in board] == [("Ann", 0), ("Ben", 4)]
        assert (await service.user_rank(ann))["current_streak"] == 0


class TestLeaderboardEndpoints:
    """Tests for GET /api/leaderboard and /api/leaderboard/streaks."""

    async def test_anonymous_leaderboard(self, client, db):
        await add_player(db, "Ann", 900)
        response = await client.get("/api/leaderboard")
        assert response.status_code == 200
        data = response.json()
        assert data["user_rank"] is None
        assert data["leaderboard"][0]["profile"]["name"] == "Ann"
        assert data["leaderboard"][0]["rank"] == 1

    async def test_caller_rank_included(self, client, db, user):
        await add_player(db, "Ann", 900)
        await client.get("/api/gamification/points", headers=user["headers"])

        data = (await client.get("/api/leaderboard", headers=user["headers"])).json()
        assert data["user_rank"] == {"rank": 2, "total_points": 0, "current_streak": 0}

    async def test_points_award_refreshes_cached_board(self, client, db, user, catalog):
        await add_player(db, "Ann", 50)
        first = (await client.get("/api/leaderboard")).json()
        assert [row["profile"]["name"] for row in first["leaderboard"]] == ["Ann"]

        modules = (await client.get("/api/learning/modules")).json()
        await client.post(
            f"/api/learning/modules/{modules[0]['id']}/lessons/1/complete", headers=user["headers"]
        )

        second = (await client.get("/api/leaderboard")).json()
        assert [row["profile"]["name"] for row in second["leaderboard"]] == ["Alice Smith", "Ann"]

    async def test_board_read_during_award_is_not_left_stale(self, client, db, user, catalog, monkeypatch):
        await add_player(db, "Ann", 50)
        original = ProgressTracker.complete_lesson

        async def complete_then_read_board(tracker, *args, **kwargs):
            result = await original(tracker, *args, **kwargs)
            # Another request reads and caches the board before this one commits
            board = await client.get("/api/leaderboard")
            assert [row["profile"]["name"] for row in board.json()["leaderboard"]] == ["Ann"]
            return result

        monkeypatch.setattr(ProgressTracker, "complete_lesson", complete_then_read_board)

        modules = (await client.get("/api/learning/modules")).json()
        response = await client.post(
            f"/api/learning/modules/{modules[0]['id']}/lessons/1/complete", headers=user["headers"]
        )
        assert response.status_code == 200

        board = (await client.get("/api/leaderboard")).json()
        assert [row["profile"]["name"] for row in board["leaderboard"]] == ["Alice Smith", "Ann"]

    async def test_streak_endpoint(self, client, db):
        await add_player(db, "Ann", 10, current_streak=4)
        response = await client.get("/api/leaderboard/streaks")
        assert response.status_code == 200
        rows = response.json()
        assert rows[0]["current_streak"] == 4
        assert rows[0]["longest_streak"] == 4
        assert rows[0]["rank"] == 1

    async def test_limit_validated(self, client):
        response = await client.get("/api/leaderboard?limit=0")
        assert response.status_code == 400
