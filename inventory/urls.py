from rest_framework.routers import DefaultRouter

from inventory.views import PartViewSet

router = DefaultRouter()
router.register(r"parts", PartViewSet, basename="part")

urlpatterns = router.urls
