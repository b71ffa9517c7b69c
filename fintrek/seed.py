"""Load the default learning catalog.

Run with ``python -m fintrek.seed``. Existing rows are left alone, so running
it again is a no-op.
"""

import asyncio
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import structlog

from fintrek.core.config import settings
from fintrek.core.database import AsyncSessionLocal, init_db, close_db
from fintrek.core.logging import setup_logging
from fintrek.models.gamification import Achievement, AchievementTier
from fintrek.models.learning import LearningModule, Quiz, QuizQuestion

logger = structlog.get_logger()

MODULES = [
    {
        "title": "Financial Fundamentals",
        "description": "Master the basics of personal finance and money management",
        "icon": "dollar-sign",
        "color": "bg-gradient-primary",
        "lessons": 8,
        "difficulty": "Beginner",
        "estimated_time": "2 hours",
        "topics": ["Budgeting", "Saving", "Emergency Funds", "Financial Goals"],
        "is_unlocked": True,
    },
    {
        "title": "Investment Basics",
        "description": "Learn the fundamentals of investing and building wealth",
        "icon": "trending-up",
        "color": "bg-gradient-success",
        "lessons": 12,
        "difficulty": "Beginner",
        "estimated_time": "3 hours",
        "topics": ["Stocks", "Bonds", "ETFs", "Risk Management"],
        "is_unlocked": True,
    },
    {
        "title": "Trading Strategies",
        "description": "Advanced trading techniques and market analysis",
        "icon": "pie-chart",
        "color": "bg-gradient-secondary",
        "lessons": 15,
        "difficulty": "Intermediate",
        "estimated_time": "5 hours",
        "topics": ["Technical Analysis", "Chart Patterns", "Day Trading", "Options"],
        "is_unlocked": True,
    },
    {
        "title": "Portfolio Management",
        "description": "Build and manage diversified investment portfolios",
        "icon": "briefcase",
        "color": "bg-accent",
        "lessons": 10,
        "difficulty": "Advanced",
        "estimated_time": "4 hours",
        "topics": ["Asset Allocation", "Rebalancing", "Risk Assessment", "Performance Analysis"],
        "is_unlocked": False,
    },
]

DAILY_QUIZ = {
    "title": "Daily Financial Quiz",
    "description": "Test your knowledge and earn points!",
    "time_limit": 300,
    "questions": [
        {
            "question": "What percentage of your income should ideally go towards savings according to the 50/30/20 rule?",
            "options": ["10%", "20%", "30%", "50%"],
            "correct_answer": 1,
            "explanation": "The 50/30/20 rule suggests allocating 20% of your income towards savings and debt repayment.",
        },
        {
            "question": "Which of the following is considered a 'liquid' asset?",
            "options": ["Real estate", "Savings account", "Retirement fund", "Collectibles"],
            "correct_answer": 1,
            "explanation": "A savings account is highly liquid because you can easily access your money without penalties or delays.",
        },
        {
            "question": "What is the primary purpose of an emergency fund?",
            "options": [
                "To invest in high-risk opportunities",
                "To cover unexpected expenses",
                "To buy luxury items",
                "To pay regular monthly bills",
            ],
            "correct_answer": 1,
            "explanation": "An emergency fund is designed to cover unexpected expenses like medical bills, job loss, or major repairs.",
        },
        {
            "question": "Which investment typically offers the highest potential returns over the long term?",
            "options": ["Savings accounts", "Government bonds", "Stocks", "Certificates of deposit (CDs)"],
            "correct_answer": 2,
            "explanation": "Historically, stocks have provided the highest long-term returns, though they also come with higher risk.",
        },
        {
            "question": "What does 'diversification' mean in investing?",
            "options": [
                "Putting all money in one stock",
                "Spreading investments across different assets",
                "Only investing in bonds",
                "Keeping all money in cash",
            ],
            "correct_answer": 1,
            "explanation": "Diversification means spreading your investments across different asset types to reduce overall risk.",
        },
    ],
}

ACHIEVEMENTS = [
    {"title": "First Steps", "description": "Complete first lesson", "type": AchievementTier.BRONZE,
     "icon": "zap", "lessons_required": 1},
    {"title": "Week Warrior", "description": "7-day learning streak", "type": AchievementTier.SILVER,
     "icon": "star", "streak_required": 7},
    {"title": "Knowledge Seeker", "description": "Complete 20 lessons", "type": AchievementTier.GOLD,
     "icon": "crown", "lessons_required": 20},
    {"title": "Streak Legend", "description": "30-day learning streak", "type": AchievementTier.GOLD,
     "icon": "star", "streak_required": 30},
    {"title": "Finance Master", "description": "Complete all modules", "type": AchievementTier.DIAMOND,
     "icon": "crown", "lessons_required": 45},
    {"title": "Rising Star", "description": "Earn 500 points", "type": AchievementTier.BRONZE,
     "icon": "award", "points_required": 500},
    {"title": "Point Collector", "description": "Earn 5,000 points", "type": AchievementTier.GOLD,
     "icon": "award", "points_required": 5000},
    # Awarded manually
    {"title": "Quiz Master", "description": "Perfect score on 5 quizzes", "type": AchievementTier.GOLD,
     "icon": "award"},
    {"title": "Community Helper", "description": "Help 10 community members", "type": AchievementTier.SILVER,
     "icon": "award"},
]


async def seed_catalog(db: AsyncSession) -> Dict[str, int]:
    """Insert whatever part of the default catalog is missing. Returns rows added per kind."""
    added = {"modules": 0, "quizzes": 0, "achievements": 0}

    module_count = await db.scalar(select(func.count(LearningModule.id)))
    if not module_count:
        for index, data in enumerate(MODULES, start=1):
            db.add(LearningModule(order_index=index, **data))
            added["modules"] += 1

    daily_count = await db.scalar(select(func.count(Quiz.id)).where(Quiz.is_daily.is_(True)))
    if not daily_count:
        quiz = Quiz(
            title=DAILY_QUIZ["title"],
            description=DAILY_QUIZ["description"],
            is_daily=True,
            points_per_question=settings.DEFAULT_POINTS_PER_QUESTION,
            time_limit=DAILY_QUIZ["time_limit"],
            questions=[
                QuizQuestion(order_index=index, **question)
                for index, question in enumerate(DAILY_QUIZ["questions"])
            ]
        )
        db.add(quiz)
        added["quizzes"] += 1

    existing_titles = set((await db.execute(select(Achievement.title))).scalars().all())
    for data in ACHIEVEMENTS:
        if data["title"] in existing_titles:
            continue
        db.add(Achievement(**{**data, "type": data["type"].value}))
        added["achievements"] += 1

    await db.commit()
    logger.info("Catalog seeded", **added)
    return added


async def main():
    setup_logging(command="seed")
    await init_db()
    try:
        async with AsyncSessionLocal() as db:
            await seed_catalog(db)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
