from django.urls import path
from . import views

urlpatterns = [
    path("", views.agenda, name="agenda"),
    path("eventos/", views.agenda_eventos, name="agenda_eventos"),
    path("nueva/", views.cita_nueva, name="cita_nueva"),
    path("<uuid:pk>/editar/", views.cita_editar, name="cita_editar"),
    path("<uuid:pk>/estado/", views.cita_estado, name="cita_estado"),
    path("<uuid:pk>/eliminar/", views.cita_eliminar, name="cita_eliminar"),
]
