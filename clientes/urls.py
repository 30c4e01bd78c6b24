from django.urls import path
from . import views

urlpatterns = [
    path("", views.cliente_lista, name="cliente_lista"),
    path("nuevo/", views.cliente_nuevo, name="cliente_nuevo"),
    path("importar/", views.clientes_importar, name="clientes_importar"),
    path("importar/confirmar/", views.clientes_importar_confirmar, name="clientes_importar_confirmar"),
    path("exportar/", views.clientes_exportar, name="clientes_exportar"),
    path("plantilla.csv", views.clientes_plantilla, name="clientes_plantilla"),
    path("<uuid:pk>/", views.cliente_detalle, name="cliente_detalle"),
    path("<uuid:pk>/editar/", views.cliente_editar, name="cliente_editar"),
    path("<uuid:pk>/eliminar/", views.cliente_eliminar, name="cliente_eliminar"),
    path("<uuid:pk>/vehiculos/nuevo/", views.vehiculo_nuevo, name="vehiculo_nuevo"),
    path("vehiculos/<uuid:pk>/editar/", views.vehiculo_editar, name="vehiculo_editar"),
    path("vehiculos/<uuid:pk>/eliminar/", views.vehiculo_eliminar, name="vehiculo_eliminar"),
]
