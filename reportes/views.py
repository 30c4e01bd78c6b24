from django.core.paginator import Paginator
from django.http import HttpResponse
from django.shortcuts import render
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.formatting.rule import DataBarRule
from openpyxl.styles import Font

from core.auth import require_permiso
from core.models import Config
from core.permisos import Capacidad
from core.services import auditar
from partes.models import EstadoParte
from personal.services import UsuarioRepositorio

from . import estadisticas
from .pdf import pdf_resumen


# ---------- utilidades ----------
def _nombre_archivo_reporte(base, filtros):
    hoy = timezone.localdate().strftime("%Y%m%d")
    estado = filtros.get("estado") or "todos"
    extra = ""
    fi = filtros["fini"].replace("-", "")
    ff = filtros["ffin"].replace("-", "")
    if fi or ff:
        extra += f"_{fi or 'all'}-{ff or 'all'}"
    return f"{base}_{hoy}_{estado}{extra}"


def _to_naive(dt):
    if not dt:
        return ""
    return timezone.localtime(dt).replace(tzinfo=None)


def _filtros(request):
    filtros = estadisticas.parse_filtros(request.GET)
    stats = estadisticas.resumen(request.store, filtros)
    filtros["tecnico_nombre"] = stats["nombres"].get(filtros["tecnico"], "")
    return filtros, stats


# ---------- vistas ----------
@require_permiso(Capacidad.VER_INFORMES)
def dashboard_reportes(request):
    filtros, stats = _filtros(request)
    partes_page = Paginator(stats["partes"], 15).get_page(request.GET.get("page") or 1)

    ctx = {
        "filtros": filtros,
        "stats": stats,
        "partes_page": partes_page,
        "materiales_top": stats["materiales"][:10],
        "estados": EstadoParte.choices,
        "rangos": estadisticas.RANGOS,
        "tecnicos": UsuarioRepositorio(request.store).activos(),
        "query": request.GET.urlencode(),
    }
    return render(request, "reportes/dashboard.html", ctx)


# --- Exportaciones ---
@require_permiso(Capacidad.GENERAR_INFORMES)
def export_excel(request):
    filtros, stats = _filtros(request)
    cfg = Config.get_solo()
    nombres = stats["nombres"]
    negrita = Font(bold=True)

    wb = Workbook()

    # Hoja 1: Resumen
    ws = wb.active
    ws.title = "Resumen"
    ws.append([f"{cfg.nombre_empresa} - Informe de partes de trabajo"])
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=4)
    ws["A1"].font = Font(bold=True, size=13)
    ws.append([f"Generado: {timezone.localtime(timezone.now()).strftime('%d-%m-%Y %H:%M')}"])
    ws.append([f"Desde: {filtros['fini'] or '(todos)'}", f"Hasta: {filtros['ffin'] or '(todos)'}",
               f"Estado: {filtros['estado'] or '(todos)'}", f"Técnico: {filtros['tecnico_nombre'] or '(todos)'}"])
    ws.append([])
    ws.append(["Partes", stats["total"]])
    ws.append(["Horas reales", stats["horas_reales"]])
    ws.append(["Horas facturables", stats["horas_facturables"]])
    ws.append(["Solicitudes de vacaciones pendientes", stats["vacaciones_pendientes"]])
    ws.append([])
    ws.append(["Estado", "Partes"])
    for cell in ws[ws.max_row]:
        cell.font = negrita
    for fila in stats["por_estado"]:
        ws.append(list(fila))
    ws.column_dimensions["A"].width = 36
    for col in ("B", "C", "D"):
        ws.column_dimensions[col].width = 22

    # Hoja 2: Partes
    wsP = wb.create_sheet("Partes")
    wsP.append(["Número", "Cliente", "Matrícula", "Técnico", "Tipo", "Prioridad", "Estado",
                "Creado", "Inicio", "Fin", "Horas reales", "Horas facturables"])
    for cell in wsP[1]:
        cell.font = negrita
    for p in stats["partes"]:
        wsP.append([
            p["numero_parte"], p["cliente_nombre"], p["vehiculo_matricula"],
            nombres.get(p["tecnico_asignado_id"], ""), p["tipo_trabajo"], p["prioridad"], p["estado"],
            _to_naive(p["created_at"]), _to_naive(p["fecha_inicio"]), _to_naive(p["fecha_fin"]),
            p["horas_reales"], p["horas_facturables"],
        ])
    for col, w in zip("ABCDEFGHIJKL", [16, 28, 12, 24, 14, 11, 13, 17, 17, 17, 13, 16]):
        wsP.column_dimensions[col].width = w
    for row in wsP.iter_rows(min_row=2, min_col=8, max_col=10):
        for cell in row:
            cell.number_format = "DD-MM-YYYY HH:MM"
    for row in wsP.iter_rows(min_row=2, min_col=11, max_col=12):
        for cell in row:
            cell.number_format = "0.00"

    # Hoja 3: Técnicos
    wsT = wb.create_sheet("Técnicos")
    wsT.append(["Técnico", "Partes", "Horas en partes"])
    for cell in wsT[1]:
        cell.font = negrita
    for fila in stats["por_tecnico"]:
        wsT.append(list(fila))
    if stats["por_tecnico"]:
        fin = len(stats["por_tecnico"]) + 1
        wsT.conditional_formatting.add(
            f"C2:C{fin}", DataBarRule(start_type="min", end_type="max", color="638EC6")
        )
    wsT.append([])
    wsT.append(["Persona", "Horas de jornada"])
    for cell in wsT[wsT.max_row]:
        cell.font = negrita
    for fila in stats["presencia"]:
        wsT.append(list(fila))
    wsT.column_dimensions["A"].width = 30
    wsT.column_dimensions["B"].width = 18
    wsT.column_dimensions["C"].width = 18

    # Hoja 4: Materiales
    wsM = wb.create_sheet("Materiales")
    wsM.append(["Código", "Descripción", "Cantidad", "Importe (€)"])
    for cell in wsM[1]:
        cell.font = negrita
    for codigo, descripcion, cantidad, importe in stats["materiales"]:
        wsM.append([codigo, descripcion, float(cantidad), float(importe)])
    for col, w in zip("ABCD", [16, 40, 12, 14]):
        wsM.column_dimensions[col].width = w
    for cell in wsM["D"][1:]:
        cell.number_format = "#,##0.00"

    fname = _nombre_archivo_reporte("informe_partes", filtros) + ".xlsx"
    resp = HttpResponse(content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    resp["Content-Disposition"] = f'attachment; filename="{fname}"'
    wb.save(resp)
    auditar("REPORTES", "EXPORT_EXCEL", request.usuario, fname, filtros=request.GET.dict())
    return resp


@require_permiso(Capacidad.GENERAR_INFORMES)
def export_pdf(request):
    filtros, stats = _filtros(request)
    fname = _nombre_archivo_reporte("informe_partes", filtros) + ".pdf"
    resp = HttpResponse(content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="{fname}"'
    pdf_resumen(resp, stats, filtros, Config.get_solo())
    auditar("REPORTES", "EXPORT_PDF", request.usuario, fname, filtros=request.GET.dict())
    return resp
