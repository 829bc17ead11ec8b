import pytest
from bson import ObjectId
from datetime import datetime
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db, init_db
from main import app
from routes.auth import create_token, hash_password


@pytest.fixture
async def db():
    """A fresh in-memory database with the production indexes."""
    database = AsyncMongoMockClient()[f"quiz_test_{ObjectId()}"]
    await init_db(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
async def admin(db):
    admin = {
        "id": str(ObjectId()),
        "name": "quizmaster",
        "email": "quizmaster@example.com",
        "passwordHash": hash_password("secret"),
        "lastLoginAt": None,
        "createdAt": datetime.utcnow(),
    }
    await db.admins.insert_one(dict(admin))
    return admin


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_token(admin['id'], 'admin')}"}


@pytest.fixture
async def user(db):
    user = {"id": str(ObjectId()), "name": "budi", "createdAt": datetime.utcnow()}
    await db.users.insert_one(dict(user))
    return user


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_token(user['id'], 'user')}"}


@pytest.fixture
async def category(db, admin):
    category = {
        "id": str(ObjectId()),
        "name": "Geography",
        "imageUrl": "",
        "createdBy": admin["id"],
        "createdAt": datetime.utcnow(),
    }
    await db.categories.insert_one(dict(category))
    return category


@pytest.fixture
def make_question(db):
    """Factory inserting a question whose correct option is ``correct_label``."""
    async def _factory(category_id, correct_label="B", status="active", text="Capital of France?"):
        question = {
            "id": str(ObjectId()),
            "text": text,
            "optionA": "Berlin",
            "optionB": "Paris",
            "optionC": "Rome",
            "correctLabel": correct_label,
            "imageUrl": "",
            "categoryId": category_id,
            "createdBy": None,
            "status": status,
            "createdAt": datetime.utcnow(),
        }
        await db.questions.insert_one(dict(question))
        return question
    return _factory


@pytest.fixture
async def question(make_question, category):
    return await make_question(category["id"])
