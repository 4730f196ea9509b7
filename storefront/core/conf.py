"""
Access to STOREFRONT domain settings.

Values in settings.STOREFRONT are the defaults; a row in the core.Setting
table with the same key overrides them at runtime. Setting values are
stored as JSON text, falling back to the raw string.
"""
import json
import logging

from django.conf import settings

from .models import Setting

logger = logging.getLogger(__name__)

_MISSING = object()


def get_setting(name, default=_MISSING):
    override = Setting.objects.filter(key=name).values_list('value', flat=True).first()
    if override is not None:
        try:
            return json.loads(override)
        except ValueError:
            return override

    value = getattr(settings, 'STOREFRONT', {}).get(name, default)
    if value is _MISSING:
        raise KeyError(f"Unknown storefront setting: {name}")
    return value
