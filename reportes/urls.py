from django.urls import path
from . import views

urlpatterns = [
    path("", views.dashboard_reportes, name="informes"),
    path("export/excel/", views.export_excel, name="informes_excel"),
    path("export/pdf/", views.export_pdf, name="informes_pdf"),
]
