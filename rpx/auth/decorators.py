"""Decorators for protecting API routes."""

from functools import wraps

from rpx.errors import AuthenticationRequired, Unauthorized

from .utils import current_user_id, current_user_is_admin


def login_required(f=None, admin_required=False):
    """Reject the request unless a user is logged in.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if current_user_id() is None:
                raise AuthenticationRequired()
            if admin_required and not current_user_is_admin():
                raise Unauthorized("Access restricted to administrators.")
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
