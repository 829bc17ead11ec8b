# database.py
from motor.motor_asyncio import AsyncIOMotorClient
import logging

import config

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(config.MONGODB_URI)
db = client[config.MONGODB_DB]

COLLECTIONS = ["admins", "users", "categories", "questions", "answers", "scores", "activity_logs"]


def get_db():
    """FastAPI dependency returning the application database handle."""
    return db


async def init_db(database):
    for name in COLLECTIONS:
        await database[name].create_index("id", unique=True)
    await database.admins.create_index("email", unique=True)
    # One running score per (user, category)
    await database.scores.create_index([("userId", 1), ("categoryId", 1)], unique=True)
    await database.answers.create_index([("userId", 1), ("categoryId", 1)])
    await database.questions.create_index("categoryId")
    logger.info(f"Indexes ensured on {len(COLLECTIONS)} collections")


def clean(doc):
    """Drop Mongo's internal ``_id`` so the document serializes as JSON."""
    if doc is not None:
        doc.pop("_id", None)
    return doc
