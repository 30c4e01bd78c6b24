from django.urls import path
from . import views

urlpatterns = [
    path("", views.material_lista, name="material_lista"),
    path("nuevo/", views.material_nuevo, name="material_nuevo"),
    path("<uuid:pk>/editar/", views.material_editar, name="material_editar"),
    path("<uuid:pk>/eliminar/", views.material_eliminar, name="material_eliminar"),
    path("<uuid:pk>/stock/", views.material_stock, name="material_stock"),
]
