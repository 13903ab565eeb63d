import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.auth import roles
from backend.auth.dependencies import require_roles
from backend.auth.session_store import SessionUser
from backend.database import SessionLocal, ensure_submission_schema, ensure_vote_schema
from backend.models.submission import Submission
from backend.models.vote import Vote

router = APIRouter(tags=['submissions'])

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 10
MAX_REMARKS_LENGTH = 500


def _required_text(value: str, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{field_name} is required.')
    return normalized


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class SubmissionRequest(BaseModel):
    team_member_name: str
    submission_link: str
    problem_description: str
    project_name: str | None = None
    hours_spent: int | None = None
    services_used: str | None = None
    git_repo_url: str | None = None

    @field_validator('team_member_name')
    @classmethod
    def validate_team_member_name(cls, value: str) -> str:
        return _required_text(value, 'Team member name')

    @field_validator('submission_link')
    @classmethod
    def validate_submission_link(cls, value: str) -> str:
        return _required_text(value, 'Submission link')

    @field_validator('problem_description')
    @classmethod
    def validate_problem_description(cls, value: str) -> str:
        return _required_text(value, 'Problem description')

    @field_validator('project_name', 'services_used', 'git_repo_url')
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @field_validator('hours_spent')
    @classmethod
    def validate_hours_spent(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError('Hours spent cannot be negative.')
        return value


class VoteRequest(BaseModel):
    rating: int
    remarks: str | None = None

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int) -> int:
        if not MIN_RATING <= value <= MAX_RATING:
            raise ValueError(f'Please select a rating between {MIN_RATING} and {MAX_RATING}.')
        return value

    @field_validator('remarks')
    @classmethod
    def validate_remarks(cls, value: str | None) -> str | None:
        normalized = _optional_text(value)
        if normalized is not None and len(normalized) > MAX_REMARKS_LENGTH:
            raise ValueError(f'Remarks must be {MAX_REMARKS_LENGTH} characters or fewer.')
        return normalized


class VoteResponse(BaseModel):
    submission_id: int
    judge_id: int
    judge_name: str | None = None
    rating: int
    remarks: str | None = None


class SubmissionResponse(BaseModel):
    id: int
    team_member_name: str
    project_name: str | None = None
    submission_link: str
    problem_description: str
    hours_spent: int | None = None
    services_used: str | None = None
    git_repo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SubmissionListItem(SubmissionResponse):
    average_rating: float
    vote_count: int
    my_vote: VoteResponse | None = None
    votes: list[VoteResponse] | None = None


def ensure_database_ready() -> None:
    try:
        ensure_submission_schema()
        ensure_vote_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def to_vote_response(vote: Vote) -> VoteResponse:
    return VoteResponse(
        submission_id=vote.submission_id,
        judge_id=vote.judge_id,
        judge_name=vote.judge.name if vote.judge else None,
        rating=vote.rating,
        remarks=vote.remarks,
    )


def filter_by_team_member(submissions: list[Submission], search: str | None) -> list[Submission]:
    term = (search or '').strip().lower()
    if not term:
        return submissions
    return [submission for submission in submissions if term in (submission.team_member_name or '').lower()]


def build_list_item(submission: Submission, viewer: SessionUser) -> SubmissionListItem:
    ratings = [vote.rating for vote in submission.votes]
    average = round(sum(ratings) / len(ratings), 2) if ratings else 0.0
    item = SubmissionListItem(
        **SubmissionResponse.model_validate(submission).model_dump(),
        average_rating=average,
        vote_count=len(ratings),
    )
    if viewer.role == roles.SUPERADMIN:
        item.votes = [to_vote_response(vote) for vote in submission.votes]
    else:
        own = next((vote for vote in submission.votes if str(vote.judge_id) == str(viewer.id)), None)
        item.my_vote = to_vote_response(own) if own else None
    return item


def get_submission_or_404(submission_id: int, db: Session) -> Submission:
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if submission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Submission not found.')
    return submission


@router.get('', response_model=list[SubmissionListItem])
def list_submissions(
    q: str | None = Query(default=None),
    viewer: SessionUser = Depends(require_roles(roles.JUDGE, roles.SUPERADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    try:
        submissions = (
            db.query(Submission)
            .options(selectinload(Submission.votes).selectinload(Vote.judge))
            .order_by(Submission.created_at.desc(), Submission.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to load submissions.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Unable to load submissions right now.',
        ) from exc

    return [build_list_item(submission, viewer) for submission in filter_by_team_member(submissions, q)]


@router.post('', response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def create_submission(
    data: SubmissionRequest,
    _admin: SessionUser = Depends(require_roles(roles.SUPERADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    submission = Submission(**data.model_dump())
    try:
        db.add(submission)
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create submission.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Unable to create submission right now.',
        ) from exc
    return submission


@router.put('/{submission_id}', response_model=SubmissionResponse)
def update_submission(
    submission_id: int,
    data: SubmissionRequest,
    _admin: SessionUser = Depends(require_roles(roles.SUPERADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    try:
        submission = get_submission_or_404(submission_id, db)
        for field_name, value in data.model_dump().items():
            setattr(submission, field_name, value)
        submission.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update submission %s.', submission_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Unable to update submission right now.',
        ) from exc
    return submission


@router.delete('/{submission_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_submission(
    submission_id: int,
    _admin: SessionUser = Depends(require_roles(roles.SUPERADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    try:
        submission = get_submission_or_404(submission_id, db)
        db.delete(submission)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to delete submission %s.', submission_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Unable to delete submission right now.',
        ) from exc


@router.put('/{submission_id}/vote', response_model=VoteResponse)
def cast_vote(
    submission_id: int,
    data: VoteRequest,
    judge: SessionUser = Depends(require_roles(roles.JUDGE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    try:
        get_submission_or_404(submission_id, db)
        judge_id = int(judge.id)
        vote = (
            db.query(Vote)
            .filter(Vote.submission_id == submission_id, Vote.judge_id == judge_id)
            .first()
        )
        if vote is None:
            vote = Vote(submission_id=submission_id, judge_id=judge_id)
            db.add(vote)
        vote.rating = data.rating
        vote.remarks = data.remarks
        vote.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(vote)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Your vote changed while saving. Please try again.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save vote for submission %s.', submission_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Unable to save your vote right now.',
        ) from exc
    return to_vote_response(vote)
