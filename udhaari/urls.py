from rest_framework.routers import DefaultRouter

from udhaari.views import UdhaariRecordViewSet

router = DefaultRouter()
router.register(r"udhaari", UdhaariRecordViewSet, basename="udhaari")

urlpatterns = router.urls
