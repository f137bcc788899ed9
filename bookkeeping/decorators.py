# bookkeeping/decorators.py
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.http import JsonResponse


def _resolve_owner(user):
    """
    Every authenticated, active account owns its own books.
    """
    if not user or not user.is_authenticated:
        raise PermissionDenied("Not authenticated")

    if not user.is_active:
        raise PermissionDenied("Account disabled")

    return user


def owner_required(view_func):
    """
    Login gate + sets request.owner for owner-scoped queries.
    """
    @login_required
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        request.owner = _resolve_owner(request.user)
        return view_func(request, *args, **kwargs)
    return _wrapped


def api_owner_required(view_func):
    """
    Same as owner_required, but answers 401 JSON instead of redirecting to login.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return JsonResponse({"error": "Authentication required."}, status=401)

        request.owner = _resolve_owner(user)
        return view_func(request, *args, **kwargs)
    return _wrapped
