from dj_rest_auth.views import LogoutView
from dj_rest_auth.views import PasswordChangeView
from dj_rest_auth.views import UserDetailsView
from django.urls import path

from .auth_views import CookieOnlyLoginView

# Curated auth URLs excluding token-based endpoints.
# Login sets HttpOnly JWT cookies and refuses locked accounts with HTTP 423.
urlpatterns = [
    path("login/", CookieOnlyLoginView.as_view(), name="dj-rest-auth_login"),
    path("logout/", LogoutView.as_view(), name="dj-rest-auth_logout"),
    path("password/change/", PasswordChangeView.as_view(), name="rest_password_change"),
    path("user/", UserDetailsView.as_view(), name="rest_user_details"),
]
