from django.urls import path
from . import views

urlpatterns = [
    path("", views.presupuesto_lista, name="presupuesto_lista"),
    path("nuevo/", views.presupuesto_nuevo, name="presupuesto_nuevo"),
    path("<uuid:pk>/", views.presupuesto_detalle, name="presupuesto_detalle"),
    path("<uuid:pk>/estado/", views.presupuesto_estado, name="presupuesto_estado"),
    path("<uuid:pk>/crear-parte/", views.presupuesto_crear_parte, name="presupuesto_crear_parte"),
]
