# users/urls.py

from django.urls import path
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, MeView, RegisterView, UserViewSet

app_name = "users"

router = SimpleRouter()
router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    # ---------------- JWT ----------------
    path("jwt/create/", LoginView.as_view(), name="jwt-create"),
    path("jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    # ---------------- AUTHENTICATED ----------------
    path("me/", MeView.as_view(), name="me"),
    path("register/", RegisterView.as_view(), name="register"),
    # ---------------- ADMIN ----------------
    *router.urls,
]
