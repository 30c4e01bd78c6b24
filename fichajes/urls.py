from django.urls import path, re_path
from . import views

urlpatterns = [
    path("", views.presencia, name="presencia"),
    path("fichar/", views.fichar, name="fichar"),
    path("historial/", views.fichajes_lista, name="fichajes_lista"),
    re_path(r"^exportar/(?P<formato>html|pdf)/$", views.fichajes_exportar, name="fichajes_exportar"),
]
