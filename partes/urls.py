from django.urls import path
from . import views

urlpatterns = [
    path("", views.parte_lista, name="parte_lista"),
    path("nuevo/", views.parte_nuevo, name="parte_nuevo"),
    path("<uuid:pk>/", views.parte_detalle, name="parte_detalle"),
    path("<uuid:pk>/editar/", views.parte_editar, name="parte_editar"),
    path("<uuid:pk>/fichar/", views.parte_fichar, name="parte_fichar"),
    path("<uuid:pk>/cerrar/", views.parte_cerrar, name="parte_cerrar"),
    path("<uuid:pk>/cancelar/", views.parte_cancelar, name="parte_cancelar"),
    path("<uuid:pk>/eliminar/", views.parte_eliminar, name="parte_eliminar"),
    path("<uuid:pk>/horas/", views.parte_horas, name="parte_horas"),
    path("<uuid:pk>/pdf/", views.parte_pdf, name="parte_pdf"),
    path("<uuid:pk>/materiales/", views.parte_material_agregar, name="parte_material_agregar"),
    path("<uuid:pk>/materiales/<uuid:material_pk>/quitar/", views.parte_material_quitar, name="parte_material_quitar"),
]
