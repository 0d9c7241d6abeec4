from smartcare import __version__

class TestApplication:

    def test_health(self, client, test_db):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["version"] == __version__

    def test_info_lists_endpoints(self, client, test_db):
        response = client.get("/api/v1/info")
        assert response.status_code == 200
        assert response.json()["endpoints"]["appointments"] == "/api/v1/appointments"

    def test_not_found_keeps_detail(self, client, doctor):
        _, headers = doctor

        response = client.get("/api/v1/appointments/12345", headers=headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Appointment not found"
        assert response.json()["path"] == "/api/v1/appointments/12345"

    def test_process_time_header(self, client, test_db):
        response = client.get("/")
        assert "X-Process-Time" in response.headers
