"""Tests for RemoteScoringSource (mocked transport)."""

import json

import httpx
import pytest

from app.dashboard.exceptions import PredictionError
from app.dashboard.models import Direction, ModelName
from app.dashboard.scoring_client import RemoteScoringSource
from app.dashboard.state import StateStore

GOOD_BODY = {
    "direction": "DOWN",
    "confidence": 81,
    "probabilities": {"up": 42.3, "down": 57.7},
    "model": "svm",
    "timestamp": "2025-02-10T15:00:00+00:00",
}


def _source(handler) -> RemoteScoringSource:
    return RemoteScoringSource("http://scoring.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
class TestRemoteScoringSource:
    """Unit tests for the scoring service client."""

    async def test_predict_parses_response(self, store):
        """A valid response becomes a Prediction."""
        snapshot = await store.load_initial_data()
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=GOOD_BODY)

        source = _source(handler)
        prediction = await source.predict(snapshot)
        await source.close()

        assert prediction.direction is Direction.DOWN
        assert prediction.confidence == 81
        assert prediction.model is ModelName.SVM
        assert prediction.probability_up == 42.3

        (request,) = requests
        assert request.method == "POST"
        assert str(request.url) == "http://scoring.test/predict"
        body = json.loads(request.content)
        assert body["currentPrice"] == snapshot.current_price
        assert body["featureCount"] == 60
        assert len(body["priceHistory"]) == 30

    async def test_base_url_trailing_slash_stripped(self):
        """The configured base URL is normalized."""
        source = _source(lambda request: httpx.Response(200, json=GOOD_BODY))
        assert source.base_url == "http://scoring.test"
        await source.close()

    async def test_http_error_status(self, store):
        """A 5xx response raises PredictionError with the status."""
        snapshot = await store.load_initial_data()
        source = _source(lambda request: httpx.Response(503, json={"detail": "busy"}))

        with pytest.raises(PredictionError) as exc_info:
            await source.predict(snapshot)
        await source.close()

        assert exc_info.value.context["status"] == 503

    async def test_connection_error(self, store):
        """Transport failures raise PredictionError."""
        snapshot = await store.load_initial_data()

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = _source(handler)
        with pytest.raises(PredictionError, match="unreachable"):
            await source.predict(snapshot)
        await source.close()

    async def test_invalid_json(self, store):
        """A non-JSON body raises PredictionError."""
        snapshot = await store.load_initial_data()
        source = _source(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(PredictionError, match="invalid JSON"):
            await source.predict(snapshot)
        await source.close()

    async def test_invalid_prediction(self, store):
        """A JSON body that is not a valid prediction raises PredictionError."""
        snapshot = await store.load_initial_data()
        bad = dict(GOOD_BODY, confidence=12)
        source = _source(lambda request: httpx.Response(200, json=bad))

        with pytest.raises(PredictionError, match="invalid prediction"):
            await source.predict(snapshot)
        await source.close()

    async def test_no_snapshot(self):
        """Scoring without loaded data fails fast, without a request."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=GOOD_BODY)

        source = _source(handler)

        with pytest.raises(PredictionError):
            await source.predict(None)
        await source.close()

        assert calls == []

    async def test_store_maps_remote_failure(self, bus):
        """Through the store, remote failures still free the busy flag."""
        source = _source(lambda request: httpx.Response(500))
        store = StateStore(bus, source)
        await store.load_initial_data()

        with pytest.raises(PredictionError):
            await store.start_prediction()
        await source.close()

        assert store.is_busy is False

    @pytest.mark.parametrize(
        "probabilities",
        [b'{"up": NaN, "down": NaN}', b'{"up": 150.0, "down": -50.0}'],
    )
    async def test_out_of_range_probabilities_rejected(self, bus, probabilities):
        """NaN or negative probabilities never become the stored prediction."""
        body = (
            b'{"direction": "UP", "confidence": 80, "model": "svm", "probabilities": '
            + probabilities
            + b"}"
        )
        source = _source(
            lambda request: httpx.Response(
                200, content=body, headers={"content-type": "application/json"}
            )
        )
        store = StateStore(bus, source)
        await store.load_initial_data()

        with pytest.raises(PredictionError, match="invalid prediction"):
            await store.start_prediction()
        await source.close()

        assert store.current_prediction() is None
