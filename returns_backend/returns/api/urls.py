# returns/api/urls.py

"""
RETURNS API URLS

Mounted at /api/returns/ by backend/urls.py.

Rules:
- "stats" is a router list-route (detail=False), so it resolves before <pk>.
- SimpleRouter: a root view at "" would shadow the list route.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from returns.views.returns import ReturnViewSet

router = SimpleRouter()
router.register(r"", ReturnViewSet, basename="returns")

urlpatterns = [
    path("", include(router.urls)),
]
