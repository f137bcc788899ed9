# bookkeeping/owner_utils.py
from django.core.exceptions import PermissionDenied


def require_owner(request):
    owner = getattr(request, "owner", None)
    if owner is None:
        raise PermissionDenied("Owner not resolved.")
    return owner


def owner_qs(request, model_or_qs):
    """
    Owner-safe queryset scoping. Anonymous requests get an empty queryset.
    """
    qs = model_or_qs.objects.all() if hasattr(model_or_qs, "objects") else model_or_qs

    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        return qs.none()

    # Scoped for superusers too.
    return qs.filter(owner=require_owner(request))
