import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import GuardRedirect
from backend.core import config
from backend.database import Base, engine, ensure_submission_schema, ensure_user_schema, ensure_vote_schema
from backend.models import submission, user, vote  # noqa: F401
from backend.routes import auth_routes, results_routes, submission_routes

config.validate_runtime_config()

app = FastAPI(title='VIA VoteHub')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)
logging.getLogger('backend').setLevel(config.LOG_LEVEL)


@app.middleware('http')
async def persist_session_cookie(request: Request, call_next):
    response = await call_next(request)
    storage = getattr(request.state, 'session_storage', None)
    if storage is not None:
        storage.apply(response)
    return response


@app.exception_handler(GuardRedirect)
async def redirect_from_guard(request: Request, exc: GuardRedirect):
    return RedirectResponse(url=exc.target, status_code=303)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
        ensure_submission_schema()
        ensure_vote_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'VIA VoteHub API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(submission_routes.router, prefix='/submissions')
app.include_router(results_routes.router, prefix='/results')
