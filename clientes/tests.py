from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.exceptions import ValidacionError
from core.store import MemoryStore, Resultado
from core.tests import BaseVistasTestCase

from .importacion import ErrorFila, a_cliente, importar_clientes, leer_csv, validar_filas
from .services import ClienteRepositorio, VehiculoRepositorio, eliminar_cliente, guardar_cliente, guardar_vehiculo

CSV_VALIDO = (
    "nombre,cif,telefono,email,direccion,contacto_principal,notas,activo\n"
    "Transportes García S.L.,B12345678,968123456,info@garcia.es,Murcia,Antonio,,true\n"
    "Grúas Levante,B87654321,965000111,,Alicante,,,false\n"
)


def _fila(**extra):
    fila = {
        "nombre": "Transportes García", "cif": "B12345678", "telefono": "968123456",
        "email": "", "direccion": "", "contacto_principal": "", "notas": "", "activo": "",
    }
    fila.update(extra)
    return fila


class LeerCSVTests(SimpleTestCase):
    def test_lee_columnas_conocidas(self):
        filas = leer_csv(CSV_VALIDO)
        self.assertEqual(len(filas), 2)
        self.assertEqual(filas[0]["nombre"], "Transportes García S.L.")
        self.assertEqual(filas[1]["activo"], "false")

    def test_bytes_con_bom_y_punto_y_coma(self):
        contenido = "\ufeffnombre;cif;telefono\nTalleres Sur;B11223344;600000000\n".encode("utf-8")
        filas = leer_csv(contenido)
        self.assertEqual(filas, [_fila(nombre="Talleres Sur", cif="B11223344", telefono="600000000")])

    def test_ignora_filas_vacias(self):
        self.assertEqual(len(leer_csv(CSV_VALIDO + ",,,,,,,\n")), 2)
        self.assertEqual(leer_csv(""), [])


class ValidarFilasTests(SimpleTestCase):
    def test_filas_validas(self):
        self.assertEqual(validar_filas(leer_csv(CSV_VALIDO)), [])

    def test_cif_obligatorio(self):
        errores = validar_filas([_fila(cif="")])
        self.assertEqual(errores, [ErrorFila(1, "cif", "El CIF es obligatorio")])

    def test_formatos(self):
        errores = validar_filas([_fila(), _fila(cif="123", email="sin-arroba", activo="quizá", telefono="")])
        self.assertEqual({(e.fila, e.campo) for e in errores}, {(2, "cif"), (2, "email"), (2, "activo"), (2, "telefono")})

    def test_cif_en_minusculas_no_vale(self):
        errores = validar_filas([_fila(cif="b12345678")])
        self.assertEqual(errores, [ErrorFila(1, "cif", "Formato de CIF inválido")])

    def test_a_cliente(self):
        datos = a_cliente(_fila(cif="B12345678", activo="no"))
        self.assertEqual(datos["cif"], "B12345678")
        self.assertFalse(datos["activo"])
        self.assertTrue(a_cliente(_fila())["activo"])


class ImportarClientesTests(TestCase):
    def setUp(self):
        self.store = MemoryStore()

    def test_con_errores_no_importa_nada(self):
        with self.assertRaises(ValidacionError):
            importar_clientes(self.store, [_fila(), _fila(cif="")])
        self.assertEqual(self.store.listar("clientes").unwrap(), [])

    def test_importa_todas(self):
        resultado = importar_clientes(self.store, leer_csv(CSV_VALIDO))
        self.assertEqual(len(resultado.creados), 2)
        self.assertEqual(resultado.fallidos, [])
        self.assertEqual(len(self.store.listar("clientes").unwrap()), 2)

    def test_fallo_en_una_fila_no_detiene_las_demas(self):
        original = self.store.crear
        llamadas = []

        def crear(tabla, datos):
            llamadas.append(datos["nombre"])
            if len(llamadas) == 1:
                return Resultado.fallo(ValidacionError("Error de conexión"))
            return original(tabla, datos)

        with mock.patch.object(self.store, "crear", side_effect=crear):
            resultado = importar_clientes(self.store, leer_csv(CSV_VALIDO))

        self.assertEqual(resultado.fallidos, [(1, "Error de conexión")])
        self.assertEqual([c["nombre"] for c in resultado.creados], ["Grúas Levante"])
        self.assertEqual(len(llamadas), 2)


class ClientesServiciosTests(TestCase):
    def setUp(self):
        self.store = MemoryStore()

    def test_nombre_obligatorio(self):
        with self.assertRaises(ValidacionError):
            guardar_cliente(self.store, {"nombre": " "})

    def test_cif_en_mayusculas_y_busqueda(self):
        guardar_cliente(self.store, {"nombre": "Grúas Levante", "cif": "b87654321 ", "telefono": "965000111"})
        self.assertEqual(ClienteRepositorio(self.store).buscar("B8765")[0]["cif"], "B87654321")
        self.assertEqual(len(ClienteRepositorio(self.store).buscar("965")), 1)
        self.assertEqual(ClienteRepositorio(self.store).buscar("zzz"), [])

    def test_eliminar_cliente_borra_sus_vehiculos(self):
        cliente = guardar_cliente(self.store, {"nombre": "Grúas Levante"})
        guardar_vehiculo(self.store, {"cliente_id": cliente["id"], "matricula": "1234abc"})
        self.assertEqual(VehiculoRepositorio(self.store).de_cliente(cliente["id"])[0]["matricula"], "1234ABC")
        eliminar_cliente(self.store, cliente["id"])
        self.assertEqual(self.store.listar("vehiculos").unwrap(), [])


class ClientesVistasTests(BaseVistasTestCase):
    def test_lista(self):
        self.entrar(self.tecnico)
        guardar_cliente(self.store, {"nombre": "Grúas Levante"})
        resp = self.client.get(reverse("cliente_lista"))
        self.assertContains(resp, "Grúas Levante")

    def test_tecnico_no_crea_clientes(self):
        self.entrar(self.tecnico)
        self.assertRedirects(self.client.get(reverse("cliente_nuevo")), reverse("home"))

    def test_importar_y_confirmar(self):
        self.entrar(self.admin)
        archivo = SimpleUploadedFile("clientes.csv", CSV_VALIDO.encode("utf-8"), content_type="text/csv")
        resp = self.client.post(reverse("clientes_importar"), {"archivo": archivo})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.store.listar("clientes").unwrap(), [])

        resp = self.client.post(reverse("clientes_importar_confirmar"))
        self.assertRedirects(resp, reverse("cliente_lista"))
        self.assertEqual(len(self.store.listar("clientes").unwrap()), 2)

    def test_importar_con_errores_no_deja_nada_pendiente(self):
        self.entrar(self.admin)
        contenido = "nombre,cif,telefono\nSin CIF,,600000000\n"
        archivo = SimpleUploadedFile("clientes.csv", contenido.encode("utf-8"), content_type="text/csv")
        resp = self.client.post(reverse("clientes_importar"), {"archivo": archivo})
        self.assertContains(resp, "El CIF es obligatorio")
        resp = self.client.post(reverse("clientes_importar_confirmar"))
        self.assertRedirects(resp, reverse("clientes_importar"))

    def test_exportar(self):
        self.entrar(self.admin)
        guardar_cliente(self.store, {"nombre": "Grúas Levante", "cif": "B87654321"})
        resp = self.client.get(reverse("clientes_exportar"))
        self.assertEqual(resp.status_code, 200)
        self.assertIn("attachment", resp["Content-Disposition"])
        self.assertIn("B87654321", resp.content.decode("utf-8"))
