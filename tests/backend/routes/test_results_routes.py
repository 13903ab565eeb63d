import pytest

from backend.auth.session_store import SessionUser
from backend.models.submission import Submission
from backend.models.user import User
from backend.models.vote import Vote
from backend.routes.results_routes import get_results, rank_submissions, score_ratings


def _submission(submission_id: int, name: str, ratings: list[int]) -> Submission:
    submission = Submission(id=submission_id, team_member_name=name)
    submission.votes = [
        Vote(rating=rating, judge=User(name=f'Judge {index}')) for index, rating in enumerate(ratings, start=1)
    ]
    return submission


def test_score_ratings_without_votes() -> None:
    assert score_ratings([]) == (0, 0.0, 0.0)


def test_score_ratings_single_vote_has_no_deviation() -> None:
    assert score_ratings([7]) == (7, 7.0, 0.0)


def test_score_ratings_uses_population_standard_deviation() -> None:
    total, average, deviation = score_ratings([2, 4, 4, 4, 5, 5, 7, 9])

    assert total == 40
    assert average == 5.0
    assert deviation == 2.0


def test_score_ratings_rounds_to_two_decimals() -> None:
    assert score_ratings([1, 2, 2]) == (5, 1.67, 0.47)


def test_rank_submissions_orders_by_total_score() -> None:
    ranked = rank_submissions([
        _submission(1, 'Team Alpha', [5, 6]),
        _submission(2, 'Team Beta', [9, 9, 8]),
        _submission(3, 'Team Gamma', []),
    ])

    assert [entry.team_member_name for entry in ranked] == ['Team Beta', 'Team Alpha', 'Team Gamma']
    assert [entry.rank for entry in ranked] == [1, 2, 3]
    assert ranked[0].total_score == 26
    assert ranked[0].judge_count == 3
    assert ranked[0].votes[0].judge_name == 'Judge 1'
    assert ranked[2].average_rating == 0.0


def test_rank_submissions_keeps_input_order_for_ties() -> None:
    ranked = rank_submissions([_submission(1, 'First', [5]), _submission(2, 'Second', [5])])

    assert [entry.submission_id for entry in ranked] == [1, 2]


ADMIN = SessionUser(id=1, email='admin@example.com', name='Super Admin', role='superadmin')


@pytest.fixture
def results_db(session_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('backend.routes.results_routes.ensure_database_ready', lambda: None)
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def _seed_scored_submissions(db, ratings_by_team: dict[str, list[int]]) -> None:
    judges = [
        User(id=index, email=f'judge{index}@example.com', name=f'Judge {index}', password_digest='x', role='judge')
        for index in range(1, 4)
    ]
    db.add_all(judges)
    for submission_id, (team, ratings) in enumerate(ratings_by_team.items(), start=1):
        db.add(Submission(id=submission_id, team_member_name=team, submission_link='https://example.com', problem_description='Demo'))
        for judge, rating in zip(judges, ratings):
            db.add(Vote(submission_id=submission_id, judge_id=judge.id, rating=rating))
    db.commit()


def test_get_results_podium_holds_top_three_ranked_entries(results_db) -> None:
    _seed_scored_submissions(results_db, {
        'Team Alpha': [5, 6],
        'Team Beta': [9, 9, 8],
        'Team Gamma': [7],
        'Team Delta': [10, 10],
        'Team Epsilon': [],
    })

    response = get_results(_admin=ADMIN, db=results_db)

    assert [entry.team_member_name for entry in response.podium] == ['Team Beta', 'Team Delta', 'Team Alpha']
    assert response.podium == response.submissions[:3]
    assert len(response.submissions) == 5


def test_get_results_podium_is_short_when_few_submissions(results_db) -> None:
    _seed_scored_submissions(results_db, {'Team Alpha': [4], 'Team Beta': [8]})

    response = get_results(_admin=ADMIN, db=results_db)

    assert [entry.rank for entry in response.podium] == [1, 2]
    assert response.podium[0].team_member_name == 'Team Beta'
