# routes/auth.py
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from bcrypt import hashpw, gensalt, checkpw
from bson import ObjectId
from datetime import datetime, timedelta
import logging

import config
from database import get_db, clean
from models.admin import AdminLogin
from models.user import UserLogin
from services.activity_log import log_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login-admin")

def hash_password(password: str) -> str:
    return hashpw(password.encode("utf-8"), gensalt()).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False

def create_token(subject_id: str, token_type: str) -> str:
    if token_type == "user":
        expires = timedelta(days=config.USER_TOKEN_EXPIRES_DAYS)
    else:
        expires = timedelta(minutes=config.JWT_EXPIRES_MINUTES)
    payload = {"id": subject_id, "type": token_type, "exp": datetime.utcnow() + expires}
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

def decode_token(token: str, token_type: str) -> str:
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWTError: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token")
    subject_id = payload.get("id")
    if not subject_id or payload.get("type") != token_type:
        logger.warning(f"Token rejected: expected type {token_type}, got {payload.get('type')}")
        raise HTTPException(status_code=401, detail="Invalid token")
    return subject_id

async def get_current_admin(token: str = Depends(oauth2_scheme), db=Depends(get_db)):
    admin_id = decode_token(token, "admin")
    admin = await db.admins.find_one({"id": admin_id})
    if not admin:
        logger.warning(f"Admin not found for id: {admin_id}")
        raise HTTPException(status_code=401, detail="Admin not found")
    return {"id": admin["id"], "name": admin["name"], "email": admin["email"]}

async def get_current_user(token: str = Depends(oauth2_scheme), db=Depends(get_db)):
    user_id = decode_token(token, "user")
    user = await db.users.find_one({"id": user_id})
    if not user:
        logger.warning(f"User not found for id: {user_id}")
        raise HTTPException(status_code=401, detail="User not found")
    return {"id": user["id"], "name": user["name"]}

async def ensure_default_admin(db):
    """Create the seed admin from configuration if it does not exist yet."""
    if not config.DEFAULT_ADMIN_EMAIL or not config.DEFAULT_ADMIN_PASSWORD:
        return None
    email = config.DEFAULT_ADMIN_EMAIL.lower()
    if await db.admins.find_one({"email": email}):
        return None
    admin = {
        "id": str(ObjectId()),
        "name": config.DEFAULT_ADMIN_NAME,
        "email": email,
        "passwordHash": hash_password(config.DEFAULT_ADMIN_PASSWORD),
        "lastLoginAt": None,
        "createdAt": datetime.utcnow(),
    }
    await db.admins.insert_one(admin)
    logger.info(f"Default admin created: {email}")
    return clean(admin)

@router.post("/login-admin")
async def login_admin(request: AdminLogin, db=Depends(get_db)):
    email = request.email.strip().lower()
    logger.info(f"Admin login attempt for email: {email}")

    admin = await db.admins.find_one({"email": email})
    if not admin or not verify_password(request.password, admin["passwordHash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    await db.admins.update_one({"id": admin["id"]}, {"$set": {"lastLoginAt": datetime.utcnow()}})
    await log_activity(db, admin["id"], "LOGIN", "admins", "Admin signed in")

    return {
        "access_token": create_token(admin["id"], "admin"),
        "token_type": "bearer",
        "admin": {"id": admin["id"], "name": admin["name"], "email": admin["email"]}
    }

@router.post("/login-user")
async def login_user(request: UserLogin, db=Depends(get_db)):
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    user = await db.users.find_one({"name": name})
    if not user:
        user = {"id": str(ObjectId()), "name": name, "createdAt": datetime.utcnow()}
        await db.users.insert_one(user)
        logger.info(f"Registered new user: {name}")

    return {
        "access_token": create_token(user["id"], "user"),
        "token_type": "bearer",
        "user": {"id": user["id"], "name": user["name"]}
    }

@router.get("/current-admin")
async def get_current_admin_endpoint(current_admin: dict = Depends(get_current_admin)):
    return current_admin
