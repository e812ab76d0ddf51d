# doctors/urls.py

from rest_framework.routers import SimpleRouter

from doctors.views import DoctorViewSet

app_name = "doctors"

router = SimpleRouter()
router.register(r"", DoctorViewSet, basename="doctor")

urlpatterns = router.urls
