from flask import current_app, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ..extensions import db
from ..forms import form_error_response
from ..models import User, UserProfile
from ..text_utils import clean, clean_or_none
from . import bp
from .forms import ChangePasswordForm, LoginForm, ProfileForm, RegistrationForm


def _ensure_profile(user: User) -> UserProfile:
    if user.profile is None:
        user.profile = UserProfile()
        db.session.commit()
    return user.profile


def _account_payload(user: User) -> dict:
    profile = _ensure_profile(user)
    return {"user": user.to_dict(), "profile": profile.to_dict()}


@bp.route("/csrf-token")
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})


@bp.route("/register", methods=["POST"])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = User(email=clean(form.email.data).lower(), display_name=clean(form.display_name.data))
    user.set_password(form.password.data)
    user.profile = UserProfile()
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered account %s", user.id)
    return jsonify({"user": user.to_dict()}), 201


@bp.route("/login", methods=["POST"])
def login():
    if current_user.is_authenticated:
        return jsonify({"user": current_user.to_dict()})

    form = LoginForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = User.query.filter_by(email=clean(form.email.data).lower()).first()
    if user is None or not user.check_password(form.password.data):
        return jsonify({"error": "Invalid email or password."}), 401

    login_user(user)
    return jsonify({"user": user.to_dict()})


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(_account_payload(current_user))


@bp.route("/me", methods=["PUT"])
@login_required
def update_me():
    form = ProfileForm(partial=True)
    if not form.validate_on_submit():
        return form_error_response(form)

    changes = form.submitted_data()
    display_name = clean(changes.pop("display_name", None))
    if display_name:
        current_user.display_name = display_name

    profile = _ensure_profile(current_user)
    for field_name, value in changes.items():
        setattr(profile, field_name, clean_or_none(value))
    db.session.commit()
    return jsonify(_account_payload(current_user))


@bp.route("/me/password", methods=["POST"])
@login_required
def change_password():
    form = ChangePasswordForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    if not current_user.check_password(form.current_password.data):
        return jsonify({"error": "Current password is incorrect."}), 400

    current_user.set_password(form.new_password.data)
    db.session.commit()
    current_app.logger.info("Password changed for account %s", current_user.id)
    return jsonify({"success": True})
