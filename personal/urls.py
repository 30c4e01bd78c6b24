from django.urls import path
from . import views

urlpatterns = [
    path("", views.personal_lista, name="personal_lista"),
    path("nuevo/", views.personal_nuevo, name="personal_nuevo"),
    path("<uuid:pk>/editar/", views.personal_editar, name="personal_editar"),
    path("<uuid:pk>/activo/", views.personal_toggle_activo, name="personal_toggle_activo"),
    path("<uuid:pk>/password/", views.personal_password, name="personal_password"),
    path("<uuid:pk>/eliminar/", views.personal_eliminar, name="personal_eliminar"),
    path("vacaciones/", views.vacaciones, name="vacaciones"),
    path("vacaciones/<uuid:pk>/aprobar/", views.vacaciones_aprobar, name="vacaciones_aprobar"),
    path("vacaciones/<uuid:pk>/rechazar/", views.vacaciones_rechazar, name="vacaciones_rechazar"),
]
