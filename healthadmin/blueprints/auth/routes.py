"""
Routes for the auth blueprint.

Login and forgot-password never tell a caller whether an email is
registered: login answers "Invalid credentials." for both an unknown
email and a wrong password, and forgot-password always returns the same
message.
"""

from flask_login import current_user, login_required

from healthadmin.blueprints.auth import bp
from healthadmin.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterUserRequest,
    ResetPasswordRequest,
    parse_body,
)
from healthadmin.responses import success
from healthadmin.services import get_services
from healthadmin.services.user_service import to_response

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


@bp.route("/register", methods=["POST"])
def register():
    """Public sign-up.  New accounts get the baseline role only."""
    body = parse_body(RegisterUserRequest)
    user = get_services().auth.register(body.email, body.password, body.full_name)
    return success(
        to_response(user), message="User registered successfully.", status_code=201
    )


@bp.route("/login", methods=["POST"])
def login():
    body = parse_body(LoginRequest)
    result = get_services().auth.login(body.email, body.password)
    return success(
        {
            "accessToken": result["accessToken"],
            "refreshToken": result["refreshToken"],
            "user": to_response(result["user"]),
        },
        message="Login successful.",
    )


@bp.route("/refresh-token", methods=["POST"])
def refresh_token():
    body = parse_body(RefreshTokenRequest)
    access_token = get_services().auth.refresh(body.refresh_token)
    return success({"accessToken": access_token}, message="Token refreshed successfully.")


@bp.route("/me")
@login_required
def me():
    """Profile of the user the bearer token belongs to."""
    user = get_services().auth.profile(current_user.id)
    return success(to_response(user))


@bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    body = parse_body(ForgotPasswordRequest)
    get_services().password_reset.request_reset(body.email)
    return success(message=FORGOT_PASSWORD_MESSAGE)


@bp.route("/reset-password", methods=["POST"])
def reset_password():
    body = parse_body(ResetPasswordRequest)
    get_services().password_reset.reset_password(body.token, body.new_password)
    return success(message="Password has been reset successfully. You can now log in.")
