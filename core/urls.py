from django.urls import path
from rest_framework.routers import DefaultRouter

from core.views import AuditLogViewSet, BusinessProfileView, RegisterView

router = DefaultRouter()
router.register(r"audit-logs", AuditLogViewSet, basename="audit-log")

urlpatterns = router.urls + [
    path("register/", RegisterView.as_view(), name="register"),
    path("business-profile/", BusinessProfileView.as_view(), name="business-profile"),
]
