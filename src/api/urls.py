"""Main API URL router for /api/v1/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from api.v1 import views as v1_views

router = DefaultRouter()
router.register(r"leads", v1_views.LeadViewSet, basename="lead")
router.register(r"reports", v1_views.SalesReportViewSet, basename="report")

app_name = "api"
urlpatterns = [
    path("", include(router.urls)),
    path("salespeople/", v1_views.SalespersonListView.as_view(), name="salespeople"),
]
