"""Session helpers for the external authentication provider."""

from .decorators import login_required
from .utils import current_user_id, current_user_is_admin

__all__ = ["current_user_id", "current_user_is_admin", "login_required"]
