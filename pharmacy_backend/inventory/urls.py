# inventory/urls.py

from rest_framework.routers import DefaultRouter

from inventory.views import BatchViewSet, ProductViewSet

app_name = "inventory"

router = DefaultRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"batches", BatchViewSet, basename="batch")

urlpatterns = router.urls
