"""Tests for profile read, update and account deletion."""

import uuid

from sqlalchemy import func, select

from fintrek.models.community import Discussion
from fintrek.models.finance import Transaction
from fintrek.models.gamification import Points
from fintrek.models.user import Profile, User


class TestGetProfile:
    """Tests for GET /profile."""

    async def test_returns_camel_case_profile(self, client, user):
        response = await client.get("/profile", headers=user["headers"])
        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["uid"] == user["uid"]
        assert profile["email"] == "alice@example.com"
        assert profile["firstName"] == "Alice"
        assert profile["lastName"] == "Smith"
        assert profile["name"] == "Alice Smith"
        assert profile["avatarUrl"] is None


class TestUpdateProfile:
    """Tests for PUT /profile."""

    async def test_update_names_and_avatar(self, client, user):
        """Display name follows the updated names."""
        response = await client.put("/profile", headers=user["headers"], json={
            "firstName": "  Alicia ",
            "avatarUrl": "https://example.com/a.png",
        })
        assert response.status_code == 200
        assert response.json() == {"message": "Profile updated successfully"}

        profile = (await client.get("/profile", headers=user["headers"])).json()["profile"]
        assert profile["firstName"] == "Alicia"
        assert profile["lastName"] == "Smith"
        assert profile["name"] == "Alicia Smith"
        assert profile["avatarUrl"] == "https://example.com/a.png"

    async def test_empty_body_changes_nothing(self, client, user):
        response = await client.put("/profile", headers=user["headers"], json={})
        assert response.status_code == 200

        profile = (await client.get("/profile", headers=user["headers"])).json()["profile"]
        assert profile["name"] == "Alice Smith"

    async def test_blank_name_rejected(self, client, user):
        response = await client.put("/profile", headers=user["headers"], json={"lastName": " "})
        assert response.status_code == 400


class TestDeleteAccount:
    """Tests for DELETE /profile."""

    async def test_deletes_user_and_owned_rows(self, client, user, register, db):
        """Everything keyed to the user goes; other users are untouched."""
        other = await register(email="bob@example.com", first_name="Bob")
        await client.post("/transactions", headers=user["headers"], json={
            "amount": 10, "type": "expense", "category": "Food",
        })
        await client.post("/api/community/discussions", headers=user["headers"], json={
            "title": "Hello", "content": "First post",
        })
        await client.post("/api/community/discussions", headers=other["headers"], json={
            "title": "Bob's thread", "content": "Hi",
        })
        await client.get("/api/gamification/points", headers=user["headers"])

        response = await client.delete("/profile", headers=user["headers"])
        assert response.status_code == 200
        assert response.json() == {"message": "Account deleted successfully"}

        user_id = uuid.UUID(user["uid"])
        assert await db.get(User, user_id) is None
        assert await db.get(Profile, user_id) is None
        for model in (Transaction, Points, Discussion):
            count = await db.scalar(select(func.count(model.id)).where(model.user_id == user_id))
            assert count == 0
        assert await db.scalar(select(func.count(Discussion.id))) == 1

    async def test_deleted_user_cannot_read_profile(self, client, user):
        await client.delete("/profile", headers=user["headers"])
        response = await client.get("/profile", headers=user["headers"])
        assert response.status_code == 404
        assert response.json() == {"error": "Profile not found"}
