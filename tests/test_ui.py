"""UI tests for the admin screens under `/ui`.

The remote specials API is replaced by an in-memory fake plugged into the
shared client through `httpx.MockTransport`, so these tests never leave the
process.
"""

import io
import logging
from unittest import TestCase
from unittest.mock import patch

import httpx

from wsgi import app
from service.client import api
from service.common import status
from service.drafts import drafts
from service.previews import previews
from tests.fake_api import FakeSpecialsApi

BASE_URL = "http://especiales.test"
CAMISETAS = {
    "id": 42,
    "nombre": "Camisetas",
    "descripcion": "Lote textil",
    "categoria": "Textil",
    "fotos": [{"id": 7, "foto_path": "a.jpg"}, {"id": 8, "foto_path": "b.jpg"}],
}
PLACEHOLDER = "http://img.test/sin-foto.png"
FIELDS = {"nombre": "Gorras", "descripcion": "Bordadas", "categoria": "Promocional"}


class UiTestCase(TestCase):
    """Common setup for the admin UI tests"""

    @classmethod
    def setUpClass(cls):
        """Run once before all tests"""
        app.config["TESTING"] = True
        app.config["DEBUG"] = False
        app.logger.setLevel(logging.CRITICAL)

    @classmethod
    def tearDownClass(cls):
        """Run once after all tests"""
        api.configure(app.config["ESPECIALES_API_URL"])

    def setUp(self):
        """Runs before each test"""
        self.fake = FakeSpecialsApi([CAMISETAS])
        api.configure(BASE_URL, transport=self.fake.transport)
        drafts.clear()
        self.client = app.test_client()

    def tearDown(self):
        """Runs after each test"""
        drafts.clear()

    def _open(self, path) -> str:
        """Open a create/edit screen and return the draft token"""
        resp = self.client.get(path)
        self.assertEqual(resp.status_code, status.HTTP_302_FOUND)
        return resp.headers["Location"].rstrip("/").rsplit("/", 1)[-1]

    def _page(self, token) -> str:
        resp = self.client.get(f"/ui/borradores/{token}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        return resp.get_data(as_text=True)


######################################################################
#  L I S T   S C R E E N
######################################################################
class TestListScreen(UiTestCase):
    """The list of specials"""

    def test_list_renders_specials(self):
        """It should list specials with their first photo"""
        resp = self.client.get("/ui")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("text/html", resp.content_type)
        html = resp.get_data(as_text=True)
        self.assertIn("Administrar Especiales", html)
        self.assertIn("Camisetas", html)
        self.assertIn("Categoría: Textil", html)
        self.assertIn(f"{BASE_URL}/storage/a.jpg", html)
        self.assertNotIn(f"{BASE_URL}/storage/b.jpg", html)
        self.assertIn("/ui/especiales/42/editar", html)
        self.assertEqual(self.fake.requests[0].headers["accept"], "application/json")

    def test_list_enveloped_response(self):
        """It should accept the {data: [...]} shape too"""
        self.fake.envelope = True
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("Camisetas", html)

    def test_list_placeholder_without_photo(self):
        """It should show a placeholder for a special without photos"""
        self.fake.specials["42"]["fotos"] = []
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("No hay foto", html)

    def test_list_images_fall_back_to_placeholder(self):
        """It should swap every broken list image for the configured placeholder"""
        self.fake.specials["43"] = {
            "id": 43, "nombre": "Tazas", "descripcion": "Cerámica", "categoria": "Promocional",
            "fotos": [{"id": 9, "foto_path": "t.jpg"}],
        }
        with patch.dict(app.config, {"PLACEHOLDER_IMAGE_URL": PLACEHOLDER}):
            html = self.client.get("/ui").get_data(as_text=True)
        self.assertEqual(html.count("<img "), 2)
        self.assertEqual(html.count(f"onerror=\"this.onerror=null;this.src='{PLACEHOLDER}';\""), 2)

    def test_empty_list(self):
        """It should say when there are no specials"""
        self.fake.specials.clear()
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("No hay especiales registrados.", html)

    def test_list_no_response(self):
        """It should offer a retry when the API does not answer"""
        self.fake.fail("GET", "/api/especiales", exc=httpx.ConnectError)
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("Error al obtener especiales: No se recibió respuesta del servidor", html)
        self.assertIn("Reintentar", html)

        self.fake.failures.clear()
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("Camisetas", html)
        self.assertNotIn("Reintentar", html)

    def test_list_server_error(self):
        """It should show the status when the API answers with an error"""
        self.fake.fail("GET", "/api/especiales", status_code=500, json={"message": "boom"})
        html = self.client.get("/ui").get_data(as_text=True)
        self.assertIn("Error al obtener especiales: Status: 500", html)

    def test_delete_special(self):
        """It should delete a special after confirmation and reload the list"""
        resp = self.client.post("/ui/especiales/42/eliminar", data={"confirm": "1"})
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertNotIn("42", self.fake.specials)
        html = self.client.get(resp.headers["Location"]).get_data(as_text=True)
        self.assertIn("No hay especiales registrados.", html)

    def test_delete_special_requires_confirmation(self):
        """It should not delete without confirmation"""
        self.client.post("/ui/especiales/42/eliminar")
        self.assertIn("42", self.fake.specials)
        self.assertEqual(self.fake.calls("DELETE"), [])

    def test_delete_special_failure(self):
        """It should show the server message when delete fails"""
        self.fake.fail("DELETE", "/api/especiales/42", status_code=500, json={"message": "Bloqueado"})
        resp = self.client.post("/ui/especiales/42/eliminar", data={"confirm": "1"}, follow_redirects=True)
        self.assertIn("Error al eliminar el especial: Bloqueado", resp.get_data(as_text=True))


######################################################################
#  C R E A T E   S C R E E N
######################################################################
class TestCreateScreen(UiTestCase):
    """Creating a special"""

    def test_empty_form(self):
        """It should open an empty create form"""
        token = self._open("/ui/especiales/nuevo")
        html = self._page(token)
        self.assertIn("Agregar Especial", html)
        self.assertIn('name="nombre" value=""', html)
        self.assertNotIn("Fotos existentes", html)
        self.assertEqual(self.fake.requests, [])

    def test_create_with_two_photos(self):
        """It should stage two photos, preview them, then POST once"""
        token = self._open("/ui/especiales/nuevo")
        resp = self.client.post(
            f"/ui/borradores/{token}",
            data={
                **FIELDS,
                "action": "stage",
                "fotos": [(io.BytesIO(b"uno"), "uno.jpg"), (io.BytesIO(b"dos"), "dos.jpg")],
            },
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertEqual(self.fake.requests, [])

        html = self._page(token)
        self.assertIn('value="Gorras"', html)
        self.assertIn(f"/ui/borradores/{token}/previews/0", html)
        self.assertIn(f"/ui/borradores/{token}/previews/1", html)
        preview = self.client.get(f"/ui/borradores/{token}/previews/1")
        self.assertEqual(preview.status_code, status.HTTP_200_OK)
        self.assertEqual(preview.data, b"dos")
        self.assertEqual(self.client.get(f"/ui/borradores/{token}/previews/2").status_code, 404)

        resp = self.client.post(f"/ui/borradores/{token}", data={**FIELDS, "action": "save"})
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertTrue(resp.headers["Location"].endswith("/ui"))

        posts = self.fake.calls("POST", "/api/especiales")
        self.assertEqual(len(posts), 1)
        self.assertEqual(posts[0].form, FIELDS)
        self.assertEqual(
            [(name, filename, content) for name, filename, content in posts[0].files],
            [("fotos[0]", "uno.jpg", b"uno"), ("fotos[1]", "dos.jpg", b"dos")],
        )
        self.assertEqual(len(drafts), 0)
        self.assertEqual(len(previews), 0)
        self.assertEqual(self.client.get(f"/ui/borradores/{token}").status_code, 404)

    def test_validation_failure_keeps_form(self):
        """It should show every field error and keep the form populated"""
        self.fake.fail(
            "POST",
            "/api/especiales",
            status_code=422,
            json={"errors": {"nombre": ["required"], "categoria": ["invalid"]}},
        )
        token = self._open("/ui/especiales/nuevo")
        resp = self.client.post(
            f"/ui/borradores/{token}",
            data={**FIELDS, "action": "save", "fotos": [(io.BytesIO(b"uno"), "uno.jpg")]},
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertTrue(resp.headers["Location"].endswith(f"/ui/borradores/{token}"))

        html = self._page(token)
        self.assertIn("Validación fallida: required, invalid", html)
        self.assertIn('value="Gorras"', html)
        self.assertIn(f"/ui/borradores/{token}/previews/0", html)
        self.assertNotIn("Cargando...", html)
        form = drafts.get(token)
        self.assertEqual(len(form.staged_files), 1)
        self.assertFalse(form.loading)

    def test_cancel(self):
        """It should drop the draft and go back without calling the API"""
        token = self._open("/ui/especiales/nuevo")
        self.client.post(
            f"/ui/borradores/{token}",
            data={**FIELDS, "action": "stage", "fotos": [(io.BytesIO(b"uno"), "uno.jpg")]},
            content_type="multipart/form-data",
        )
        resp = self.client.post(f"/ui/borradores/{token}/cancelar")
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertTrue(resp.headers["Location"].endswith("/ui"))
        self.assertEqual(self.fake.requests, [])
        self.assertEqual(len(drafts), 0)
        self.assertEqual(len(previews), 0)


######################################################################
#  E D I T   S C R E E N
######################################################################
class TestEditScreen(UiTestCase):
    """Editing a special"""

    def test_edit_form_is_prefilled(self):
        """It should pre-fill special 42 with its stored photos"""
        token = self._open("/ui/especiales/42/editar")
        html = self._page(token)
        self.assertIn("Editar Especial", html)
        self.assertIn('value="Camisetas"', html)
        self.assertIn("Lote textil</textarea>", html)
        self.assertIn('value="Textil" selected', html)
        self.assertIn(f"{BASE_URL}/storage/a.jpg", html)
        self.assertIn('id="foto-7"', html)
        self.assertNotIn("preview-img", html)

    def test_existing_photos_fall_back_to_placeholder(self):
        """It should swap every broken stored photo for the configured placeholder"""
        token = self._open("/ui/especiales/42/editar")
        with patch.dict(app.config, {"PLACEHOLDER_IMAGE_URL": PLACEHOLDER}):
            html = self._page(token)
        self.assertEqual(html.count('class="existing-photo-img"'), 2)
        self.assertEqual(html.count(f"onerror=\"this.onerror=null;this.src='{PLACEHOLDER}';\""), 2)

    def test_edit_submits_put(self):
        """It should PUT the changes and never POST"""
        token = self._open("/ui/especiales/42/editar")
        resp = self.client.post(
            f"/ui/borradores/{token}", data={**FIELDS, "nombre": "Camisetas XL", "action": "save"}
        )
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        puts = self.fake.calls("PUT", "/api/especiales/42")
        self.assertEqual(len(puts), 1)
        self.assertEqual(puts[0].form["nombre"], "Camisetas XL")
        self.assertEqual(self.fake.calls("POST"), [])

    def test_remove_existing_photo(self):
        """It should delete photo 7 immediately and keep photo 8"""
        token = self._open("/ui/especiales/42/editar")
        self.fake.requests.clear()
        resp = self.client.post(f"/ui/borradores/{token}/fotos/7/eliminar", data={"confirm": "1"})
        self.assertEqual(resp.status_code, status.HTTP_303_SEE_OTHER)
        self.assertEqual([(r.method, r.path) for r in self.fake.requests], [("DELETE", "/api/fotos/7")])

        html = self._page(token)
        self.assertNotIn('id="foto-7"', html)
        self.assertIn('id="foto-8"', html)

    def test_remove_existing_photo_failure(self):
        """It should alert once and keep the photo when delete fails"""
        self.fake.fail("DELETE", "/api/fotos/7", status_code=500)
        token = self._open("/ui/especiales/42/editar")
        self.client.post(f"/ui/borradores/{token}/fotos/7/eliminar", data={"confirm": "1"})

        html = self._page(token)
        self.assertIn("No se pudo eliminar la foto", html)
        self.assertIn('id="foto-7"', html)
        self.assertNotIn("No se pudo eliminar la foto", self._page(token))

    def test_load_failure_and_retry(self):
        """It should show the load error with a retry and recover"""
        self.fake.fail("GET", "/api/especiales/42", exc=httpx.ConnectError)
        token = self._open("/ui/especiales/42/editar")
        html = self._page(token)
        self.assertIn("Error al obtener el especial", html)
        self.assertIn('id="reload-btn"', html)
        self.assertNotIn('id="save-btn"', html)

        # saving is refused while the load has not succeeded
        self.client.post(f"/ui/borradores/{token}", data={**FIELDS, "action": "save"})
        self.assertEqual(self.fake.calls("PUT"), [])

        self.fake.failures.clear()
        self.client.post(f"/ui/borradores/{token}/recargar")
        self.assertIn('value="Camisetas"', self._page(token))

    def test_edit_missing_special(self):
        """It should show the error for an unknown special"""
        token = self._open("/ui/especiales/999/editar")
        html = self._page(token)
        self.assertIn("Error al obtener el especial: Request failed with status code 404", html)
