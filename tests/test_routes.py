"""Tests for API routes."""

from uuid import uuid4

from fastapi.testclient import TestClient
from sqlmodel import Session

from app.fleet.store import append_checklist, snapshot_checklists
from app.models import checklist as checklist_module
from app.models import ChecklistKind
from tests.conftest import at

FORM = {
    "kind": "saida",
    "driver_name": "João Silva",
    "vehicle_plate": " abc1234 ",
    "vehicle_model": "fiorino",
    "odometer_km": "15000",
    "fluid_levels_ok": "sim",
    "lights_ok": "sim",
    "emergency_items_ok": "sim",
    "roadworthy": "nao",
    "observations": "",
}


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Test the health endpoint returns OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestRootRedirect:
    """Tests for the root endpoint."""

    def test_root_redirects_to_checklists(self, client: TestClient):
        """Test that root redirects to the checklist landing page."""
        response = client.get("/", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"].endswith("/checklists")


class TestChecklistPages:
    """Tests for the landing page and the checklist form."""

    def test_landing_page(self, client: TestClient):
        response = client.get("/checklists")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Registrar Novo Checklist" in response.text

    def test_departure_form(self, client: TestClient):
        response = client.get("/checklists/new", params={"kind": "saida"})
        assert response.status_code == 200
        assert "Checklist de Partida do Veículo" in response.text
        assert "KM inicial" in response.text

    def test_arrival_form(self, client: TestClient):
        response = client.get("/checklists/new", params={"kind": "chegada"})
        assert response.status_code == 200
        assert "Checklist de Chegada do Veículo" in response.text
        assert "KM final" in response.text

    def test_form_without_kind_redirects(self, client: TestClient):
        """Test that an unknown checklist kind falls back to the landing page."""
        for params in ({}, {"kind": "viagem"}):
            response = client.get(
                "/checklists/new", params=params, follow_redirects=False
            )
            assert response.status_code == 303
            assert response.headers["location"] == "/checklists"


class TestSubmitChecklist:
    """Tests for checklist submission."""

    def test_submit_redirects_to_dashboard(self, client: TestClient, session: Session):
        """Test a valid submission is stored with a normalized plate."""
        response = client.post("/checklists", data=FORM, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/trips"

        (record,) = snapshot_checklists(session)
        assert record.kind is ChecklistKind.DEPARTURE
        assert record.vehicle_plate == "ABC1234"
        assert record.odometer_km == 15000
        assert record.roadworthy is False

    def test_submit_json(self, client: TestClient):
        response = client.post(
            "/checklists",
            data={**FORM, "kind": "chegada"},
            headers={"Accept": "application/json"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["kind"] == "chegada"
        assert data["vehicle_plate"] == "ABC1234"
        assert data["submitted_at"].endswith("+00:00")
        assert "sequence" not in data

    def test_invalid_submission_shows_errors(self, client: TestClient, session: Session):
        response = client.post(
            "/checklists",
            data={**FORM, "driver_name": " ", "odometer_km": "-10"},
        )

        assert response.status_code == 400
        assert "Nome do motorista é obrigatório." in response.text
        assert "KM inicial é obrigatório e deve ser um número positivo." in response.text
        assert snapshot_checklists(session) == []

    def test_invalid_submission_json(self, client: TestClient):
        response = client.post(
            "/checklists",
            data={**FORM, "fluid_levels_ok": ""},
            headers={"Accept": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"errors": {"fluid_levels_ok": "Campo obrigatório."}}

    def test_submit_with_photo(self, client: TestClient, session: Session):
        response = client.post(
            "/checklists",
            data=FORM,
            files={"photo_front": ("frente.png", b"\x89PNG\r\n", "image/png")},
            follow_redirects=False,
        )

        assert response.status_code == 303
        (record,) = snapshot_checklists(session)
        assert record.photo_front.startswith("data:image/png;base64,")
        assert record.photo_rear is None

    def test_submit_rejects_non_image_photo(self, client: TestClient, session: Session):
        response = client.post(
            "/checklists",
            data=FORM,
            files={"photo_rear": ("notas.txt", b"not a photo", "text/plain")},
            headers={"Accept": "application/json"},
        )

        assert response.status_code == 400
        assert list(response.json()["errors"]) == ["photo_rear"]
        assert snapshot_checklists(session) == []

    def test_unknown_kind_rejected(self, client: TestClient):
        response = client.post("/checklists", data={**FORM, "kind": "viagem"})
        assert response.status_code == 422


class TestChecklistDetail:
    """Tests for reading a single checklist."""

    def test_checklist_detail(self, client: TestClient, stored_trip_records):
        record = stored_trip_records[0]

        response = client.get(f"/checklists/{record.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(record.id)
        assert data["submitted_at"] == "2024-01-01T08:00:00+00:00"
        assert "photo_front" in data

    def test_checklist_detail_not_found(self, client: TestClient):
        response = client.get(f"/checklists/{uuid4()}")
        assert response.status_code == 404


class TestTripsDashboard:
    """Tests for the trips dashboard."""

    def test_empty_dashboard(self, client: TestClient):
        response = client.get("/trips")
        assert response.status_code == 200
        assert "Nenhum checklist enviado" in response.text

    def test_dashboard_page(self, client: TestClient, stored_trip_records):
        response = client.get("/trips")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Dashboard de Viagens" in response.text
        assert "230 km percorridos" in response.text
        assert response.text.index("ABC1234") < response.text.index("XYZ9999")
        assert "Aguardando registro de saída." in response.text

    def test_dashboard_json(self, client: TestClient, stored_trip_records):
        """Test trips are paired, classified and ordered most recent first."""
        response = client.get("/trips", headers={"Accept": "application/json"})

        assert response.status_code == 200
        data = response.json()
        assert data["submission_count"] == 3
        assert data["counts"] == {"complete": 1, "in_transit": 0, "arrival_only": 1}

        complete, standalone = data["trips"]
        assert complete["vehicle_plate"] == "ABC1234"
        assert complete["status"] == "complete"
        assert complete["status_label"] == "Completa"
        assert complete["latest_timestamp"] == "2024-01-01T17:00:00+00:00"
        assert complete["distance_km"] == 230
        assert complete["departure"]["id"] == str(stored_trip_records[0].id)
        assert complete["arrival"]["id"] == str(stored_trip_records[1].id)
        assert complete["departure"]["photo_count"] == 0
        assert "photo_front" not in complete["departure"]

        assert standalone["vehicle_plate"] == "XYZ9999"
        assert standalone["status"] == "arrival_only"
        assert standalone["departure"] is None
        assert standalone["distance_km"] is None

    def test_recent_departure_not_overdue(self, client: TestClient):
        client.post("/checklists", data=FORM)

        data = client.get("/trips", headers={"Accept": "application/json"}).json()

        (trip,) = data["trips"]
        assert trip["status"] == "in_transit"
        assert trip["overdue"] is False

    def test_dashboard_marks_overdue_departure(
        self, client: TestClient, session: Session, make_checklist
    ):
        """Test a departure long without arrival is flagged as overdue."""
        append_checklist(
            session, make_checklist(ChecklistKind.DEPARTURE, "QWE5678", at(0))
        )

        response = client.get("/trips")
        data = client.get("/trips", headers={"Accept": "application/json"}).json()

        (trip,) = data["trips"]
        assert trip["status"] == "in_transit"
        assert trip["overdue"] is True
        assert "Sem chegada há mais de" in response.text

    def test_submitted_departure_and_arrival_pair(self, client: TestClient, monkeypatch):
        """Test two submitted forms pair when their clock readings differ."""
        readings = iter([at(0), at(90)])

        class SteppingClock:
            @staticmethod
            def now(tz=None):
                return next(readings)

        monkeypatch.setattr(checklist_module, "datetime", SteppingClock)

        client.post("/checklists", data=FORM)
        client.post(
            "/checklists", data={**FORM, "kind": "chegada", "odometer_km": "15120"}
        )

        data = client.get("/trips", headers={"Accept": "application/json"}).json()

        (trip,) = data["trips"]
        assert trip["status"] == "complete"
        assert trip["distance_km"] == 120
