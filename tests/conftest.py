"""
Pytest configuration and fixtures for testing.

Provides an application bound to an in-memory database, model factories
and authenticated test clients for the ProAce prediction app.
"""

from datetime import datetime, timedelta, timezone

import pytest
from flask import g
from flask_login import FlaskLoginClient

from proace import create_app, db
from proace.models import Match, MatchStatus, Prediction, Team, Tournament, User


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ProAceTestClient(FlaskLoginClient):
    """
    FlaskLoginClient that loads its own user on every request.

    Tests hold one app context open, so requests share ``g`` and flask_login
    would otherwise reuse the user loaded by an earlier client.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app():
    """Create an application with fresh tables for each test."""
    app = create_app("testing")
    app.test_client_class = ProAceTestClient

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    """Database session bound to the test application."""
    return db.session


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return app.test_client()


@pytest.fixture
def user_client(app, user_factory):
    """Client logged in as a verified regular user."""
    user = user_factory(username="player_one")
    return app.test_client(user=user), user


@pytest.fixture
def admin_client(app, user_factory):
    """Client logged in as an admin."""
    admin = user_factory(username="admin", is_admin=True)
    return app.test_client(user=admin), admin


# =============================================================================
# Model Factories
# =============================================================================


@pytest.fixture
def user_factory(session):
    """Create users with sensible defaults."""
    counter = {"n": 0}

    def _create(username=None, points=0, is_verified=True, is_admin=False, **kwargs):
        counter["n"] += 1
        user = User(
            username=username or f"user{counter['n']}",
            points=points,
            is_verified=is_verified,
            is_admin=is_admin,
            **kwargs,
        )
        user.set_password("Password123")
        session.add(user)
        session.commit()
        return user

    return _create


@pytest.fixture
def team_factory(session):
    counter = {"n": 0}

    def _create(name=None, is_custom=True):
        counter["n"] += 1
        team = Team(name=name or f"Team {counter['n']}", is_custom=is_custom)
        session.add(team)
        session.commit()
        return team

    return _create


@pytest.fixture
def tournament_factory(session):
    counter = {"n": 0}

    def _create(name=None, **kwargs):
        counter["n"] += 1
        tournament = Tournament(name=name or f"Cup {counter['n']}", **kwargs)
        session.add(tournament)
        session.commit()
        return tournament

    return _create


@pytest.fixture
def match_factory(session, team_factory, tournament_factory):
    """Create matches; teams and tournament are created when not given."""

    def _create(
        tournament=None,
        team1=None,
        team2=None,
        status=MatchStatus.UPCOMING,
        toss_winner=None,
        match_winner=None,
        match_date=None,
    ):
        tournament = tournament or tournament_factory()
        team1 = team1 or team_factory()
        team2 = team2 or team_factory()

        match = Match(
            tournament_id=tournament.id,
            team1_id=team1.id,
            team2_id=team2.id,
            match_date=match_date or _utcnow() + timedelta(days=1),
            status=status,
            toss_winner_id=toss_winner.id if toss_winner else None,
            match_winner_id=match_winner.id if match_winner else None,
        )
        session.add(match)
        session.commit()
        return match

    return _create


@pytest.fixture
def prediction_factory(session):
    def _create(user, match, toss_winner=None, match_winner=None, created_at=None):
        prediction = Prediction(
            user_id=user.id,
            match_id=match.id,
            predicted_toss_winner_id=toss_winner.id if toss_winner else None,
            predicted_match_winner_id=(match_winner or match.team1).id,
        )
        if created_at is not None:
            prediction.created_at = created_at
        session.add(prediction)
        session.commit()
        return prediction

    return _create


@pytest.fixture
def completed_match(match_factory, team_factory):
    """Factory for a completed match with both outcomes set."""

    def _create(tournament=None, toss_winner_index=1, match_winner_index=2):
        team1, team2 = team_factory(), team_factory()
        teams = {1: team1, 2: team2}
        return match_factory(
            tournament=tournament,
            team1=team1,
            team2=team2,
            status=MatchStatus.COMPLETED,
            toss_winner=teams[toss_winner_index],
            match_winner=teams[match_winner_index],
        )

    return _create
