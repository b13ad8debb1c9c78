# backend-services/dashboard-service/tests/integration/test_earnings_endpoint.py
"""
Endpoint tests for /api/earnings with the provider session mocked out.
"""
from unittest.mock import patch

import pytest
import requests

TRANSCRIPT = {
    "date": "2024-04-25",
    "transcript": "Good afternoon and thank you for joining us...",
}


class TestEarningsEndpoint:
    @patch('provider_client.session.get')
    def test_success(self, mock_get, client, api_key_env, provider_response):
        mock_get.return_value = provider_response(payload=TRANSCRIPT)

        response = client.get('/api/earnings?ticker=msft')
        data = response.get_json()

        assert response.status_code == 200
        assert data["success"] is True
        assert data["ticker"] == "MSFT"
        assert data["data"] == TRANSCRIPT
        assert data["timestamp"].endswith("Z")
        assert mock_get.call_args.kwargs["params"] == {"ticker": "MSFT"}

    @patch('provider_client.session.get')
    def test_year_and_quarter_are_forwarded(self, mock_get, client, api_key_env, provider_response):
        mock_get.return_value = provider_response(payload=TRANSCRIPT)

        response = client.get('/api/earnings?ticker=AAPL&year=2023&quarter=4')

        assert response.status_code == 200
        assert mock_get.call_args.kwargs["params"] == {"ticker": "AAPL", "year": 2023, "quarter": 4}

    @pytest.mark.parametrize("query", ["", "?ticker=", "?ticker=%20%20"])
    @patch('provider_client.session.get')
    def test_missing_ticker_is_rejected_before_any_call(self, mock_get, query, client, api_key_env):
        response = client.get(f'/api/earnings{query}')
        data = response.get_json()

        assert response.status_code == 400
        assert data["error"] == "Bad request"
        assert "/api/earnings?ticker=" in data["message"]
        assert mock_get.call_count == 0

    @patch('provider_client.session.get')
    def test_missing_ticker_wins_over_missing_key(self, mock_get, client, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)

        response = client.get('/api/earnings')

        assert response.status_code == 400
        assert mock_get.call_count == 0

    @pytest.mark.parametrize("query", ["?ticker=../etc", "?ticker=AAPL&year=abc", "?ticker=AAPL&quarter=5"])
    @patch('provider_client.session.get')
    def test_malformed_parameters_are_rejected(self, mock_get, query, client, api_key_env):
        response = client.get(f'/api/earnings{query}')

        assert response.status_code == 400
        mock_get.assert_not_called()

    @patch('provider_client.session.get')
    def test_missing_api_key_is_configuration_error(self, mock_get, client, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)

        response = client.get('/api/earnings?ticker=MSFT')

        assert response.status_code == 500
        assert response.get_json()["error"] == "Configuration error"
        mock_get.assert_not_called()

    @patch('provider_client.session.get')
    def test_provider_404_is_not_found(self, mock_get, client, api_key_env, provider_response):
        mock_get.return_value = provider_response(status_code=404, reason='Not Found')

        response = client.get('/api/earnings?ticker=zzzz')
        data = response.get_json()

        assert response.status_code == 404
        assert data == {
            "error": "Not found",
            "message": "No earnings transcript found for ticker ZZZZ",
            "ticker": "ZZZZ",
        }

    @patch('provider_client.session.get')
    def test_empty_payload_is_not_found(self, mock_get, client, api_key_env, provider_response):
        mock_get.return_value = provider_response(payload={})

        response = client.get('/api/earnings?ticker=MSFT')

        assert response.status_code == 404

    @patch('provider_client.session.get')
    def test_provider_failure_is_internal_error_without_key(self, mock_get, client, api_key_env):
        mock_get.side_effect = requests.exceptions.Timeout(f"read timed out (key={api_key_env})")

        response = client.get('/api/earnings?ticker=MSFT')
        data = response.get_json()

        assert response.status_code == 500
        assert data["error"] == "Internal server error"
        assert data["ticker"] == "MSFT"
        assert "timed out" in data["details"]
        assert api_key_env not in response.get_data(as_text=True)

    def test_wrong_method_returns_405(self, client):
        response = client.post('/api/earnings?ticker=MSFT')

        assert response.status_code == 405
        assert response.get_json()["message"] == "This endpoint only accepts GET requests"

    def test_preflight(self, client):
        response = client.options('/api/earnings', headers={
            "Origin": "https://dashboard.example.test",
            "Access-Control-Request-Method": "GET",
        })

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
