from django.apps import apps
from rest_framework.exceptions import ValidationError


def engine():
    """The app config owning the registry, tracker and stores of this process."""
    return apps.get_app_config("courseshare")


def caller_id(request):
    """Verified caller id supplied by the authentication layer, '' when anonymous."""
    if request.user and request.user.is_authenticated:
        return str(request.user.pk)
    return ""


def int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: "A valid integer is required."})
