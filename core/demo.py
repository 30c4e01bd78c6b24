# core/demo.py
"""
Datos de demostración para el modo en memoria (y para `manage.py seed_demo`).
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.utils import timezone

logger = logging.getLogger(__name__)

USUARIOS = [
    ("admin@cmghidraulica.com", "Carlos", "Martín Ruiz", "admin", "11223344C", "666555666", "Gerente", "administracion"),
    ("juan.perez@cmghidraulica.com", "Juan", "Pérez García", "tecnico", "12345678A", "666111222", "Técnico hidráulico", "hidraulica"),
    ("maria.gonzalez@cmghidraulica.com", "María", "González López", "tecnico", "87654321B", "666333444", "Técnica", "neumatica"),
    ("supervisor@cmghidraulica.com", "Ana", "Rodríguez Sánchez", "jefe_taller", "55667788D", "666777888", "Jefa de taller", "diagnostico"),
    ("recepcion@cmghidraulica.com", "Laura", "Fernández Torres", "recepcion", "99887766E", "666999000", "Recepcionista", "atencion_cliente"),
]

CLIENTES = [
    ("Transportes García S.L.", "B12345678", "666123456", "info@transportesgarcia.com", "Calle Principal 123, Madrid", "Juan García"),
    ("Logística Martínez", "B87654321", "666654321", "contacto@logisticamartinez.es", "Avenida Industrial 45, Barcelona", "María Martínez"),
    ("Construcciones López", "B11223344", "666789012", "obras@construccioneslopez.com", "Polígono Sur 67, Valencia", "Carlos López"),
]

VEHICULOS = [
    (0, "1234ABC", "Mercedes", "Actros", 2020, "Camión"),
    (0, "5678DEF", "Volvo", "FH", 2019, "Camión"),
    (1, "9012GHI", "Scania", "R450", 2021, "Camión"),
]

MATERIALES = [
    ("HID-001", "Aceite hidráulico ISO 46", "aceites", "lt", 200, 50, "4.50", "Repsol"),
    ("HID-002", "Filtro hidráulico retorno", "filtros", "un", 25, 10, "32.00", "Parker"),
    ("HID-003", "Junta tórica 40x3 NBR", "juntas", "un", 150, 40, "0.80", "SKF"),
    ("HID-004", "Manguera 1/2\" 2 mallas", "mangueras", "mt", 60, 20, "12.30", "Manuli"),
    ("HID-005", "Válvula antirretorno 3/4\"", "valvulas", "un", 4, 5, "58.00", "Bosch Rexroth"),
]


def cargar_datos_demo(store):
    """Carga usuarios, clientes, vehículos, materiales, un parte y una cita."""
    if store.listar("usuarios").unwrap():
        logger.info("El store ya tiene datos: no se cargan datos de demostración")
        return False

    password = make_password(settings.DEMO_PASSWORD)
    usuarios = []
    for email, nombre, apellidos, rol, dni, tel, puesto, esp in USUARIOS:
        usuarios.append(store.crear("usuarios", {
            "email": email, "nombre": nombre, "apellidos": apellidos, "rol": rol,
            "dni": dni, "telefono": tel, "puesto": puesto, "especialidad": esp,
            "password": password, "fecha_alta": timezone.localdate(),
        }).unwrap())

    clientes = [
        store.crear("clientes", {
            "nombre": nombre, "cif": cif, "telefono": tel, "email": email,
            "direccion": direccion, "contacto_principal": contacto,
        }).unwrap()
        for nombre, cif, tel, email, direccion, contacto in CLIENTES
    ]

    vehiculos = [
        store.crear("vehiculos", {
            "cliente_id": clientes[i]["id"], "matricula": matricula, "marca": marca,
            "modelo": modelo, "anio": anio, "tipo": tipo,
        }).unwrap()
        for i, matricula, marca, modelo, anio, tipo in VEHICULOS
    ]

    for codigo, nombre, cat, unidad, stock, minimo, precio, proveedor in MATERIALES:
        store.crear("materiales", {
            "codigo": codigo, "nombre": nombre, "categoria": cat, "unidad": unidad,
            "stock_actual": stock, "stock_minimo": minimo, "precio_unitario": precio,
            "proveedor": proveedor,
        }).unwrap()

    ahora = timezone.now()
    store.crear("partes_trabajo", {
        "numero_parte": f"PT-{timezone.localdate().year}-001",
        "cliente_id": clientes[0]["id"],
        "cliente_nombre": clientes[0]["nombre"],
        "vehiculo_id": vehiculos[0]["id"],
        "vehiculo_matricula": vehiculos[0]["matricula"],
        "vehiculo_marca": vehiculos[0]["marca"],
        "vehiculo_modelo": vehiculos[0]["modelo"],
        "descripcion": "Revisión del sistema hidráulico de la grúa",
        "tipo_trabajo": "revision",
        "prioridad": "media",
        "tecnico_asignado_id": usuarios[1]["id"],
        "creado_por_id": usuarios[3]["id"],
        "horas_estimadas": 4,
    }).unwrap()

    store.crear("citas", {
        "titulo": "Mantenimiento preventivo Scania",
        "cliente_id": clientes[1]["id"],
        "vehiculo_id": vehiculos[2]["id"],
        "tecnico_id": usuarios[2]["id"],
        "fecha_hora": (ahora + timedelta(days=1)).replace(hour=9, minute=0, second=0, microsecond=0),
        "duracion_estimada": 120,
        "tipo_servicio": "mantenimiento",
    }).unwrap()

    logger.info("Datos de demostración cargados en el store %s", store.nombre)
    return True
