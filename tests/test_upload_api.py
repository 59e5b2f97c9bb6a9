"""Integration tests for POST /upload with object storage mocked out."""

import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests
from fastapi.testclient import TestClient

from upload_relay.app.main import app
from upload_relay.app.routes.upload import get_upload_relay_service
from upload_relay.app.services.ingestion_service import IngestionService
from upload_relay.app.services.relay_service import RelayService
from upload_relay.app.services.staging_service import StagingArea
from upload_relay.app.services.upload_service import UploadRelayService

SAS_URL = "https://example.blob/core/doc.pdf?sig=abc"
TEN_MB = 10 * 1024 * 1024
PDF_BYTES = b"%PDF-1.4\n" + b"0" * (2048 - 9)
BOUNDARY = "relay-boundary"


def chunked_multipart(file_chunks):
    """Multipart body as a generator, so the client sends it without Content-Length."""
    head = (
        f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"tipo\"\r\n\r\ndi\r\n"
        f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"urlSasUpload\"\r\n\r\n{SAS_URL}\r\n"
        f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"arquivo\"; filename=\"doc.pdf\"\r\n"
        "Content-Type: application/pdf\r\n\r\n"
    ).encode()
    yield head
    yield from file_chunks
    yield f"\r\n--{BOUNDARY}--\r\n".encode()


class UploadApiTestCase(unittest.TestCase):

    max_bytes = TEN_MB

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.staging_root = Path(self._tmp.name)
        patcher = mock.patch("upload_relay.app.services.relay_service.requests.put")
        self.put = patcher.start()
        self.addCleanup(patcher.stop)
        self.remote_status = 201
        self.puts = []
        self.put.side_effect = self._remote_put

        self.service = UploadRelayService(
            StagingArea(self.staging_root),
            IngestionService(self.max_bytes),
            RelayService(connect_timeout=1.0, read_timeout=1.0),
        )
        app.dependency_overrides[get_upload_relay_service] = lambda: self.service
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self._tmp.cleanup()

    def _remote_put(self, url, data=None, headers=None, timeout=None):
        self.puts.append({"url": url, "headers": headers, "body": data if isinstance(data, bytes) else data.read()})
        response = mock.Mock()
        response.status_code = self.remote_status
        response.text = ""
        response.reason = ""
        return response

    def _post(self, files=None, tipo="di", url=SAS_URL):
        data = {}
        if tipo is not None:
            data["tipo"] = tipo
        if url is not None:
            data["urlSasUpload"] = url
        if files is None:
            files = {"arquivo": ("doc.pdf", PDF_BYTES, "application/pdf")}
        return self.client.post("/upload", data=data, files=files or None)

    def assertStagingEmpty(self):
        self.assertEqual(list(self.staging_root.iterdir()), [])


class TestUploadRelay(UploadApiTestCase):

    def test_successful_relay(self):
        response = self._post()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["fileName"], "doc.pdf")
        self.assertEqual(body["fileType"], "DI")
        self.assertEqual(body["uploadedToUrl"], SAS_URL)
        self.assertIn("message", body)

        self.assertEqual(len(self.puts), 1)
        put = self.puts[0]
        self.assertEqual(put["url"], SAS_URL)
        self.assertEqual(put["headers"]["Content-Length"], str(len(PDF_BYTES)))
        self.assertEqual(put["headers"]["x-ms-blob-type"], "BlockBlob")
        self.assertEqual(put["body"], PDF_BYTES)
        self.assertStagingEmpty()

    def test_document_type_is_case_insensitive(self):
        for tipo, expected in (("ci", "CI"), ("Ce", "CE"), ("DI", "DI")):
            response = self._post(tipo=tipo)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["fileType"], expected)
        self.assertStagingEmpty()

    def test_remote_rejection_returns_500_with_file_details(self):
        self.remote_status = 403

        response = self._post()

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body["fileName"], "doc.pdf")
        self.assertEqual(body["fileType"], "DI")
        self.assertNotIn("error", body)
        self.assertEqual(len(self.puts), 1)
        self.assertStagingEmpty()

    def test_transport_error_returns_500_with_description(self):
        self.put.side_effect = requests.exceptions.ConnectionError("Name or service not known")

        response = self._post()

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertIn("Name or service not known", body["error"])
        self.assertIn("message", body)
        self.assertNotIn("stack", body)
        self.assertStagingEmpty()

    def test_unexpected_error_still_cleans_up(self):
        self.put.side_effect = RuntimeError("boom")

        response = self._post()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "boom")
        self.assertStagingEmpty()

    def test_unwritable_staging_area_returns_500(self):
        blocker = self.staging_root / "blocker"
        blocker.write_bytes(b"")
        self.service.staging = StagingArea(blocker / "staging")

        response = self._post()

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertIn("message", body)
        self.assertTrue(body["error"])
        self.assertEqual(self.puts, [])
        self.assertEqual(list(self.staging_root.iterdir()), [blocker])


class TestUploadValidation(UploadApiTestCase):

    def test_missing_file(self):
        response = self._post(files={})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Nenhum arquivo enviado ou tipo inválido."})
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_non_pdf_mime_type(self):
        response = self._post(files={"arquivo": ("doc.txt", b"hello", "text/plain")})

        self.assertEqual(response.status_code, 400)
        self.assertIn("PDF", response.json()["message"])
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_wrong_field_name(self):
        response = self._post(files={"documento": ("doc.pdf", PDF_BYTES, "application/pdf")})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_more_than_one_file(self):
        files = [
            ("arquivo", ("a.pdf", PDF_BYTES, "application/pdf")),
            ("arquivo", ("b.pdf", PDF_BYTES, "application/pdf")),
        ]
        response = self._post(files=files)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_invalid_document_type(self):
        for tipo in ("XX", "", None, "dii", " di "):
            response = self._post(tipo=tipo)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), {"message": "Tipo de documento inválido."})
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_invalid_target_url(self):
        for url in ("http://example.blob/core/doc.pdf?sig=abc", "", None, "ftp://x"):
            response = self._post(url=url)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), {"message": "URL SAS para upload inválida."})
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_oversized_body_is_rejected_before_transmission(self):
        big = b"0" * (11 * 1024 * 1024)

        response = self._post(files={"arquivo": ("big.pdf", big, "application/pdf")})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_chunked_body_over_limit_is_cut_off_before_parsing(self):
        file_chunks = (b"0" * (1024 * 1024) for _ in range(30))

        with mock.patch.object(self.service.ingestion, "stage") as stage:
            response = self.client.post(
                "/upload",
                content=chunked_multipart(file_chunks),
                headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
            )

        self.assertEqual(response.status_code, 400)
        self.assertIn("tamanho máximo", response.json()["message"])
        stage.assert_not_called()
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_small_chunked_body_is_relayed(self):
        response = self.client.post(
            "/upload",
            content=chunked_multipart([PDF_BYTES[:1000], PDF_BYTES[1000:]]),
            headers={"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.puts[0]["headers"]["Content-Length"], str(len(PDF_BYTES)))
        self.assertEqual(self.puts[0]["body"], PDF_BYTES)
        self.assertStagingEmpty()


class TestStreamingSizeLimit(UploadApiTestCase):

    max_bytes = 1024

    def test_file_over_limit_is_aborted_while_staging(self):
        response = self._post()

        self.assertEqual(response.status_code, 400)
        self.assertIn("tamanho máximo", response.json()["message"])
        self.assertEqual(self.puts, [])
        self.assertStagingEmpty()

    def test_file_at_limit_is_accepted(self):
        exact = b"%PDF" + b"1" * 1020

        response = self._post(files={"arquivo": ("doc.pdf", exact, "application/pdf")})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.puts[0]["headers"]["Content-Length"], "1024")
        self.assertStagingEmpty()


class TestServiceEndpoints(UploadApiTestCase):

    def test_root_banner_carries_security_headers(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Hello World - test start !")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(response.headers["X-Frame-Options"], "SAMEORIGIN")

    def test_health(self):
        response = self.client.get("/api/v1/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_unlisted_origin_gets_no_cors_grant(self):
        response = self.client.get("/", headers={"Origin": "https://evil.example"})

        self.assertNotIn("access-control-allow-origin", response.headers)

    def test_malformed_multipart_uses_message_body(self):
        response = self.client.post(
            "/upload",
            content=b"garbage",
            headers={"Content-Type": "multipart/form-data"},
        )

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertIn("message", body)
        self.assertNotIn("detail", body)
        self.assertEqual(self.puts, [])

    def test_unknown_route_uses_message_body(self):
        response = self.client.get("/nope")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Not Found"})


if __name__ == '__main__':
    unittest.main()
