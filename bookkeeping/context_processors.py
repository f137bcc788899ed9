from django.conf import settings


def app_context(request):
    """
    Branding + display name of the signed-in owner for base.html.
    """
    user = getattr(request, "user", None)
    display_name = ""
    if user and user.is_authenticated:
        display_name = user.get_full_name() or user.email or user.username

    return {
        "app_name": getattr(settings, "APP_NAME", "Pharmacy Books"),
        "currency": getattr(settings, "CURRENCY_LABEL", "DA"),
        "owner_display_name": display_name,
    }
