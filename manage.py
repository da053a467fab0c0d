#!/usr/bin/env python3
"""
ProAce Management CLI

Command-line management for the ProAce cricket predictions application:
database setup, admin accounts, teams, match scoring and points upkeep.
"""

import logging

import click
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from proace import create_app, db
from proace.exceptions import ProAceError
from proace.models import Match, MatchStatus, PointsLedgerEntry, Team, Tournament, User
from proace.services import scoring_service, team_service, user_service


@click.group()
def cli():
    """ProAce Management CLI"""
    pass


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command()
@click.argument("username")
@click.argument("password")
@click.option("--email", help="Email address")
@click.option("--display-name", help="Display name")
@with_appcontext
def create_admin(username, password, email, display_name):
    """Create a verified admin user"""
    try:
        admin = user_service.create_user(
            username,
            password,
            email=email,
            display_name=display_name,
            is_admin=True,
            is_verified=True,
        )
        click.echo(f"✅ Created admin user '{admin.username}'")
    except ProAceError as e:
        click.echo(f"❌ Error creating user: {e.message}")
        logging.error(f"Admin creation failed: {e.message}")


@user.command()
@with_appcontext
def list_users():
    """List all users"""
    users = user_service.get_all_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        role = "👑" if u.is_admin else "  "
        verified = "✅" if u.is_verified else "⚠️"
        click.echo(f"  {role} {verified} {u.username} - {u.full_name} ({u.points} pts)")


@user.command()
@click.argument("username")
@click.option("--revoke", is_flag=True, help="Remove verification instead")
@with_appcontext
def verify(username, revoke):
    """Verify a user so they can make predictions"""
    try:
        target = user_service.get_user_by_username(username)
        user_service.set_verified(target.id, not revoke)
    except ProAceError as e:
        click.echo(f"❌ {e.message}")
        return

    state = "unverified" if revoke else "verified"
    click.echo(f"✅ {target.username} is now {state}")


# Team Commands
@cli.group()
def team():
    """Team commands"""
    pass


@team.command()
@with_appcontext
def seed():
    """Create the default national teams that are missing"""
    try:
        created = team_service.seed_default_teams()
    except ProAceError as e:
        click.echo(f"❌ Error seeding teams: {e.message}")
        return

    click.echo(f"✅ Seeded {created} teams")


@team.command(name="list")
@with_appcontext
def list_teams():
    """List all teams"""
    teams = team_service.get_all_teams()

    if not teams:
        click.echo("No teams found.")
        return

    click.echo("Teams:")
    for t in teams:
        kind = "custom" if t.is_custom else "default"
        click.echo(f"  {t.id}: {t.name} ({kind})")


# Match Scoring Commands
@cli.group()
def match():
    """Match scoring commands"""
    pass


@match.command()
@click.argument("match_id", type=int)
@click.option("--toss-winner", type=int, help="Team id that won the toss")
@click.option("--match-winner", type=int, help="Team id that won the match")
@with_appcontext
def score(match_id, toss_winner, match_winner):
    """Record a match result and score its predictions"""
    try:
        _, summary = scoring_service.update_match_result(
            match_id, toss_winner, match_winner
        )
    except ProAceError as e:
        click.echo(f"❌ {e.message}")
        return

    click.echo(
        f"✅ Match {match_id}: scored {summary['predictionsScored']} predictions, "
        f"{summary['pointsAwarded']} points awarded"
    )


@match.command()
@click.argument("match_id", type=int)
@with_appcontext
def rescore(match_id):
    """Re-score a completed match without double-crediting"""
    try:
        summary = scoring_service.rescore_match(match_id)
    except ProAceError as e:
        click.echo(f"❌ {e.message}")
        return

    click.echo(
        f"✅ Match {match_id}: re-scored {summary['predictionsScored']} predictions, "
        f"{summary['pointsAwarded']} points awarded"
    )


# Points Commands
@cli.group()
def points():
    """Points ledger commands"""
    pass


@points.command()
@with_appcontext
def reconcile():
    """Rebuild cached user points from the ledger"""
    try:
        drifted = scoring_service.reconcile_user_points()
    except ProAceError as e:
        click.echo(f"❌ {e.message}")
        return

    if not drifted:
        click.echo("✅ All user points match the ledger")
        return

    click.echo(f"⚠️  Reconciled {len(drifted)} users:")
    for row in drifted:
        click.echo(
            f"  {row['username']}: {row['cachedPoints']} -> {row['ledgerPoints']}"
        )


# Database Commands
@cli.group(name="db-cmd")
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏏 ProAce Application Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    click.echo(f"👥 Users: {User.query.count()}")
    click.echo(f"🏳️  Teams: {Team.query.count()}")
    click.echo(f"🏆 Tournaments: {Tournament.query.count()}")

    match_count = Match.query.count()
    completed = Match.query.filter_by(status=MatchStatus.COMPLETED).count()
    click.echo(f"🏏 Matches: {completed}/{match_count} completed")
    click.echo(f"📒 Ledger entries: {PointsLedgerEntry.query.count()}")


def main():
    app = create_app()
    with app.app_context():
        cli()


if __name__ == "__main__":
    main()
