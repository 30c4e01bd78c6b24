from django.urls import path
from . import views
from . import admin_views

urlpatterns = [
    path("", views.home, name="home"),
    path("health/", views.healthcheck, name="healthcheck"),
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("ajustes/", admin_views.ajustes_view, name="core_ajustes"),
    path("logs/", admin_views.logs_view, name="core_logs"),
]
