# reportes/pdf.py
"""
PDFs con reportlab (canvas): hoja de parte, informe de fichajes y resumen
de estadísticas. Todas escriben sobre `salida`, que puede ser un
HttpResponse o un BytesIO.
"""
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from django.utils import timezone

from fichajes.calculo import formatear_horas

ANCHO, ALTO = A4
IZQ = 2 * cm
MARGEN_INF = 2 * cm


class Hoja:
    """Canvas con cursor vertical y salto de página automático."""

    def __init__(self, salida, titulo, cfg):
        self.c = canvas.Canvas(salida, pagesize=A4)
        self.c.setTitle(titulo)
        self.titulo = titulo
        self.cfg = cfg
        self.y = ALTO - 2 * cm
        self._cabecera()

    def _cabecera(self):
        c = self.c
        c.setFont("Helvetica-Bold", 12)
        c.drawString(IZQ, self.y, f"{self.cfg.nombre_empresa} · {self.titulo}")
        c.setFont("Helvetica", 9)
        datos = " · ".join(x for x in (self.cfg.cif, self.cfg.direccion, self.cfg.telefono) if x)
        if datos:
            self.y -= 0.5 * cm
            c.drawString(IZQ, self.y, datos)
        self.y -= 0.5 * cm
        c.drawString(IZQ, self.y, f"Generado: {timezone.localtime(timezone.now()).strftime('%d-%m-%Y %H:%M')}")
        self.y -= 0.9 * cm

    def _espacio(self, alto):
        if self.y - alto < MARGEN_INF:
            self.c.showPage()
            self.y = ALTO - 2 * cm
            self._cabecera()

    def seccion(self, texto):
        self._espacio(1.2 * cm)
        self.y -= 0.2 * cm
        self.c.setFont("Helvetica-Bold", 11)
        self.c.drawString(IZQ, self.y, texto)
        self.y -= 0.6 * cm

    def linea(self, texto, negrita=False, x=IZQ):
        self._espacio(0.5 * cm)
        self.c.setFont("Helvetica-Bold" if negrita else "Helvetica", 10)
        self.c.drawString(x, self.y, str(texto))
        self.y -= 0.5 * cm

    def parrafo(self, texto, ancho=95):
        for bloque in (texto or "-").splitlines() or ["-"]:
            while len(bloque) > ancho:
                corte = bloque.rfind(" ", 0, ancho)
                corte = corte if corte > 0 else ancho
                self.linea(bloque[:corte])
                bloque = bloque[corte:].lstrip()
            self.linea(bloque)

    def tabla(self, cabeceras, filas, columnas):
        """`columnas` son las x (en cm desde el margen) de cada columna."""
        xs = [IZQ + col * cm for col in columnas]
        self._espacio(0.6 * cm)
        self.c.setFont("Helvetica-Bold", 9)
        for x, cab in zip(xs, cabeceras):
            self.c.drawString(x, self.y, cab)
        self.y -= 0.5 * cm
        self.c.setFont("Helvetica", 9)
        for fila in filas:
            self._espacio(0.45 * cm)
            self.c.setFont("Helvetica", 9)
            for x, valor in zip(xs, fila):
                self.c.drawString(x, self.y, str(valor if valor is not None else ""))
            self.y -= 0.45 * cm

    def guardar(self):
        self.c.showPage()
        self.c.save()


def _fecha(valor):
    return timezone.localtime(valor).strftime("%d-%m-%Y %H:%M") if valor else "-"


def pdf_parte(salida, parte, materiales, tramos, nombres, cfg):
    """Hoja del parte de trabajo con materiales, tramos fichados y firma."""
    hoja = Hoja(salida, f"Parte {parte['numero_parte']}", cfg)

    hoja.seccion("Datos del parte")
    hoja.linea(f"Cliente: {parte['cliente_nombre'] or '-'}")
    vehiculo = " ".join(x for x in (parte["vehiculo_matricula"], parte["vehiculo_marca"], parte["vehiculo_modelo"]) if x)
    hoja.linea(f"Vehículo: {vehiculo or '-'}   Nº serie: {parte['vehiculo_serie'] or '-'}")
    hoja.linea(f"Estado: {parte['estado']}   Prioridad: {parte['prioridad']}   Tipo: {parte['tipo_trabajo'] or '-'}")
    hoja.linea(f"Técnico: {nombres.get(parte['tecnico_asignado_id'], '-')}")
    hoja.linea(f"Inicio: {_fecha(parte['fecha_inicio'])}   Fin: {_fecha(parte['fecha_fin'])}")

    hoja.seccion("Descripción")
    hoja.parrafo(parte["descripcion"])
    hoja.seccion("Trabajo realizado")
    hoja.parrafo(parte["trabajo_realizado"])
    if parte["observaciones"]:
        hoja.seccion("Observaciones")
        hoja.parrafo(parte["observaciones"])

    hoja.seccion("Materiales")
    if materiales:
        hoja.tabla(
            ["Código", "Descripción", "Cantidad", "Precio"],
            [
                (m["codigo"], m["descripcion"][:45], f"{m['cantidad']} {m['unidad']}", f"{m['precio_unitario']} €")
                for m in materiales
            ],
            [0, 3, 11, 14],
        )
    else:
        hoja.linea("Sin materiales.")

    hoja.seccion("Horas")
    if tramos:
        hoja.tabla(
            ["Técnico", "Entrada", "Salida", "Tiempo"],
            [
                (nombres.get(usuario_id, "-"), _fecha(ini), _fecha(fin), formatear_horas(seg / 3600))
                for usuario_id, ini, fin, seg in tramos
            ],
            [0, 5, 9, 13],
        )
    hoja.linea(f"Horas reales: {formatear_horas(parte['horas_reales'])}", negrita=True)
    if parte["horas_facturables"] is not None:
        hoja.linea(f"Horas facturables: {formatear_horas(parte['horas_facturables'])}", negrita=True)

    hoja.seccion("Conformidad del cliente")
    hoja.linea(f"Nombre: {parte['firma_cliente'] or '________________'}   DNI: {parte['dni_cliente'] or '__________'}")
    hoja.guardar()


def pdf_fichajes(salida, informe, cfg):
    """`informe` es el dict de `fichajes.informes.construir_informe`."""
    hoja = Hoja(salida, "Informe de fichajes", cfg)
    hoja.linea(f"Periodo: {informe['desde'] or '(inicio)'} a {informe['hasta'] or '(hoy)'}")

    hoja.seccion("Resumen por persona")
    hoja.tabla(
        ["Persona", "Tramos", "Horas"],
        [(r["nombre"], r["tramos"], formatear_horas(r["horas"])) for r in informe["resumen"]],
        [0, 9, 12],
    )
    hoja.linea(f"Total: {formatear_horas(informe['total_horas'])}", negrita=True)

    hoja.seccion("Detalle")
    hoja.tabla(
        ["Fecha", "Persona", "Tipo", "Parte"],
        [(_fecha(f["fecha_hora"]), f["nombre"], f["tipo"], f["parte"]) for f in informe["filas"]],
        [0, 4, 10, 13],
    )
    hoja.guardar()


def pdf_resumen(salida, stats, filtros, cfg):
    hoja = Hoja(salida, "Resumen de actividad", cfg)
    hoja.linea(f"Desde: {filtros['fini'] or '(todos)'}   Hasta: {filtros['ffin'] or '(todos)'}")
    hoja.linea(f"Estado: {filtros['estado'] or '(todos)'}   Técnico: {filtros['tecnico_nombre'] or '(todos)'}")

    hoja.seccion("Partes")
    hoja.linea(f"Total: {stats['total']}   Horas reales: {formatear_horas(stats['horas_reales'])}"
               f"   Facturables: {formatear_horas(stats['horas_facturables'])}")
    hoja.tabla(["Estado", "Partes"], stats["por_estado"], [0, 6])

    hoja.seccion("Horas por técnico")
    hoja.tabla(
        ["Técnico", "Partes", "Horas"],
        [(nombre, n, formatear_horas(h)) for nombre, n, h in stats["por_tecnico"]],
        [0, 8, 11],
    )

    if stats["stock_bajo"]:
        hoja.seccion("Materiales bajo mínimo")
        hoja.tabla(
            ["Código", "Material", "Stock", "Mínimo"],
            [(m["codigo"], m["nombre"][:40], m["stock_actual"], m["stock_minimo"]) for m in stats["stock_bajo"]],
            [0, 3, 11, 14],
        )
    hoja.guardar()
