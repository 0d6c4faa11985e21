"""Decorators for the auth blueprint."""

from functools import wraps

from flask import g

from volunteerhub.errors import PermissionDeniedError, UnauthenticatedError


def login_required(f=None, role=None):
    """Reject the request unless a caller identity was resolved.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(role=UserRole.ORGANIZATION)
    def organization_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            app_session = g.get("app_session")
            if app_session is None:
                raise UnauthenticatedError("The function must be called while authenticated.")
            if role is not None and app_session.role != role:
                raise PermissionDeniedError(
                    f"This action requires the '{role.value}' role."
                )
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
