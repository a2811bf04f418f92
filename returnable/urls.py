"""URL configuration for the returnable module.

This module provides a "boxed" installation approach, allowing users to include
the returnable app with a single line in their main urls.py. All NinjaAPI
initialization logic is encapsulated within this package.
"""

from django.urls import path
from ninja import NinjaAPI
from .api import public_router, router as internal_router
from .conf import returnable_settings

# 1. Read settings from returnable_settings wrapper
SHOW_DOCS = returnable_settings.SHOW_DOCS
API_TITLE = returnable_settings.API_TITLE

# 2. Create API instance
# If SHOW_DOCS=False, pass None, which disables documentation path generation
api = NinjaAPI(
    title=API_TITLE,
    docs_url="/docs" if SHOW_DOCS else None,
    urls_namespace="returnable_default_api",  # To avoid conflicts with other APIs
)

# 3. Connect routers at the root of this API
api.add_router("", public_router)
api.add_router("", internal_router)

# 4. Export urlpatterns for use in include()
urlpatterns = [
    path("", api.urls),
]
