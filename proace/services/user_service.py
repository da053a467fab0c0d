import logging

from proace import db
from proace.exceptions import NotFoundError, ValidationError
from proace.forms import load_form
from proace.forms.users import ChangePasswordForm, ProfileForm, RegistrationForm
from proace.models import SupportTicket, TicketMessage, User
from proace.services.leaderboard_service import get_user_stats
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)


def create_user(
    username,
    password,
    email=None,
    display_name=None,
    is_admin=False,
    is_verified=False,
):
    """
    Register a new account

    Usernames are unique regardless of case. Accounts start with zero points
    and, unless created verified, cannot predict until an admin verifies them.
    """
    fields = load_form(
        RegistrationForm,
        {
            "username": username,
            "password": password,
            "email": email,
            "display_name": display_name,
        },
    )
    username = fields["username"]

    with atomic(f"create user {username}") as session:
        user = User(
            username=username,
            email=fields["email"],
            is_admin=is_admin,
            is_verified=is_verified,
        )
        user.set_password(fields["password"])
        user.set_display_name(fields["display_name"])
        session.add(user)

    logger.info(f"Created user {username}")
    return user


def get_user_by_username(username):
    user = User.get_by_username(username or "")
    if user is None:
        raise NotFoundError(f"User '{username}' not found")
    return user


def get_all_users():
    return User.query.order_by(User.id).all()


def update_user(user_id, data):
    """Update the profile fields present in data

    Accepts display_name, email, profile_image and password; an empty
    password leaves the current one in place.
    """
    user = get_or_404(User, user_id, "User")
    fields = load_form(ProfileForm, data, user=user)

    with atomic(f"update user {user_id}"):
        if "display_name" in fields:
            user.set_display_name(fields["display_name"])
        if "email" in fields:
            user.email = fields["email"]
        if "profile_image" in fields:
            user.profile_image = fields["profile_image"]
        if fields.get("password"):
            user.set_password(fields["password"])

    return user


def change_password(user_id, current_password, new_password):
    """Replace a user's password after checking the current one"""
    user = get_or_404(User, user_id, "User")
    fields = load_form(
        ChangePasswordForm,
        {"current_password": current_password, "new_password": new_password},
    )

    if not user.check_password(fields["current_password"]):
        raise ValidationError("Current password is incorrect")

    with atomic(f"change password for user {user_id}"):
        user.set_password(fields["new_password"])

    logger.info(f"User {user.username} changed their password")
    return user


def set_verified(user_id, verified=True):
    user = get_or_404(User, user_id, "User")

    with atomic(f"set verified={verified} for user {user_id}"):
        user.is_verified = bool(verified)

    logger.info(f"User {user.username} verified={user.is_verified}")
    return user


def delete_user(user_id):
    """Delete a user with their predictions, ledger entries and tickets"""
    user = get_or_404(User, user_id, "User")

    with atomic(f"delete user {user_id}") as session:
        # Detach rows on other users' tickets that point at this user
        TicketMessage.query.filter_by(user_id=user.id).delete()
        SupportTicket.query.filter_by(assigned_to_user_id=user.id).update(
            {"assigned_to_user_id": None}
        )
        session.delete(user)

    logger.info(f"Deleted user {user.username}")


def increment_view_count(user):
    with atomic(f"count profile view of {user.username}"):
        User.query.filter_by(id=user.id).update(
            {"viewed_by_count": User.viewed_by_count + 1}
        )
    db.session.refresh(user)
    return user.viewed_by_count


def get_public_profile(username, viewer=None):
    """
    Public profile of a user with prediction stats. Views from other users
    increase the profile's view counter.
    """
    user = get_user_by_username(username)

    if viewer is not None and viewer.id != user.id:
        increment_view_count(user)

    profile = user.to_dict()
    profile["stats"] = get_user_stats(user.id)
    return profile
