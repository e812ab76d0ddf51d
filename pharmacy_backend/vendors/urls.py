# vendors/urls.py

from rest_framework.routers import SimpleRouter

from vendors.views import VendorViewSet

app_name = "vendors"

router = SimpleRouter()
router.register(r"", VendorViewSet, basename="vendor")

urlpatterns = router.urls
