import logging
import math

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.auth import roles
from backend.auth.dependencies import require_roles
from backend.auth.session_store import SessionUser
from backend.models.submission import Submission
from backend.models.vote import Vote
from backend.routes.submission_routes import ensure_database_ready, get_db

router = APIRouter(tags=['results'])

logger = logging.getLogger(__name__)

PODIUM_SIZE = 3


class JudgeRating(BaseModel):
    judge_name: str | None = None
    rating: int


class SubmissionScore(BaseModel):
    rank: int
    submission_id: int
    team_member_name: str
    project_name: str | None = None
    total_score: int
    average_rating: float
    judge_count: int
    standard_deviation: float
    votes: list[JudgeRating]


class ResultsResponse(BaseModel):
    podium: list[SubmissionScore]
    submissions: list[SubmissionScore]


def score_ratings(ratings: list[int]) -> tuple[int, float, float]:
    """Return total, average and population standard deviation of ``ratings``.

    Average and deviation are rounded to two decimals; the deviation is 0 for
    fewer than two ratings.
    """
    total = sum(ratings)
    if not ratings:
        return total, 0.0, 0.0
    mean = total / len(ratings)
    deviation = 0.0
    if len(ratings) > 1:
        variance = sum((rating - mean) ** 2 for rating in ratings) / len(ratings)
        deviation = math.sqrt(variance)
    return total, round(mean, 2), round(deviation, 2)


def rank_submissions(submissions: list[Submission]) -> list[SubmissionScore]:
    scored = []
    for submission in submissions:
        ratings = [vote.rating for vote in submission.votes]
        total, average, deviation = score_ratings(ratings)
        scored.append((submission, total, average, deviation))

    # sorted() is stable, so ties keep database order.
    scored = sorted(scored, key=lambda entry: entry[1], reverse=True)

    return [
        SubmissionScore(
            rank=position,
            submission_id=submission.id,
            team_member_name=submission.team_member_name,
            project_name=submission.project_name,
            total_score=total,
            average_rating=average,
            judge_count=len(submission.votes),
            standard_deviation=deviation,
            votes=[
                JudgeRating(judge_name=vote.judge.name if vote.judge else None, rating=vote.rating)
                for vote in submission.votes
            ],
        )
        for position, (submission, total, average, deviation) in enumerate(scored, start=1)
    ]


@router.get('', response_model=ResultsResponse)
def get_results(
    _admin: SessionUser = Depends(require_roles(roles.SUPERADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    try:
        submissions = (
            db.query(Submission)
            .options(selectinload(Submission.votes).selectinload(Vote.judge))
            .order_by(Submission.id)
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to load results.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Error loading analytics data.',
        ) from exc

    ranked = rank_submissions(submissions)
    return ResultsResponse(podium=ranked[:PODIUM_SIZE], submissions=ranked)
