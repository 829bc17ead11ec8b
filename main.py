# main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

import config
from database import db, init_db
from errors import QuizError, PersistenceFailure
from routes import auth, users, categories, questions, answers, scores, logs

# Set up logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(questions.router)
app.include_router(answers.router)
app.include_router(scores.router)
app.include_router(logs.router)


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    content = {"detail": exc.message}
    if isinstance(exc, PersistenceFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        if exc.answer_id:
            content["answerId"] = exc.answer_id
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.on_event("startup")
async def startup_event():
    await init_db(db)
    await auth.ensure_default_admin(db)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
