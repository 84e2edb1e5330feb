"""Tests for builder server HTTP endpoints."""

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fable_builder.engine import Catalogue, PipelineModel, decode, encode
from fable_builder.ui.server import app, configure


@pytest.fixture
def client(sample_catalogue: Catalogue) -> TestClient:
    """Client for a server configured with the sample catalogue."""
    configure(catalogue=sample_catalogue, catalogue_path=Path("/data/catalogue.yml"))
    return TestClient(app)


def _body(model: PipelineModel) -> dict:
    return model.model_dump(mode="json")


class TestStateEndpoints:
    """Tests for GET /api/state and GET /api/catalogue."""

    def test_state(self, client: TestClient) -> None:
        """State reports the catalogue path, plugin keys and token limit."""
        response = client.get("/api/state")

        assert response.status_code == 200
        assert response.json() == {
            "cataloguePath": "/data/catalogue.yml",
            "plugins": ["core", "ecmwf/base"],
            "maxTokenLength": 1800,
        }

    def test_state_unconfigured(self) -> None:
        """An unconfigured server has an empty catalogue."""
        configure()
        client = TestClient(app)

        data = client.get("/api/state").json()

        assert data["cataloguePath"] is None
        assert data["plugins"] == []

    def test_catalogue(self, client: TestClient) -> None:
        """The catalogue is served as loaded."""
        data = client.get("/api/catalogue").json()

        assert data["core"]["factories"]["mean"]["inputs"] == ["dataset"]
        assert data["ecmwf/base"]["factories"]["ekd"]["kind"] == "source"


class TestGraphEndpoints:
    """Tests for POST /api/graph and POST /api/validate."""

    def test_graph(self, client: TestClient, chain_pipeline: PipelineModel) -> None:
        """Nodes and edges are returned without the catalogue back-reference."""
        response = client.post("/api/graph", json=_body(chain_pipeline))

        assert response.status_code == 200
        data = response.json()
        assert [n["id"] for n in data["nodes"]] == ["src", "avg", "out"]
        assert "catalogue" not in data["nodes"][0]["data"]
        assert [e["id"] for e in data["edges"]] == ["src-avg-dataset", "avg-out-data"]

    def test_graph_rejects_malformed_pipeline(self, client: TestClient) -> None:
        """Bodies that are not pipelines fail request validation."""
        response = client.post("/api/graph", json={"nodes": []})

        assert response.status_code == 422

    def test_validate(self, client: TestClient, chain_pipeline: PipelineModel) -> None:
        """The validation report is returned in frontend naming."""
        data = client.post("/api/validate", json=_body(chain_pipeline)).json()

        assert data["isValid"] is True
        assert data["globalErrors"] == []
        assert [f["factory"] for f in data["possibleSources"]] == ["model", "ekd"]
        assert data["possibleSources"][1]["plugin"] == {"store": "ecmwf", "local": "base"}
        assert data["blockStates"]["out"]["possibleExpansions"] == []

    def test_validate_empty_pipeline(self, client: TestClient) -> None:
        """An empty pipeline is reported, not rejected."""
        data = client.post("/api/validate", json={"blocks": {}}).json()

        assert data["isValid"] is False
        assert data["globalErrors"] == ["Pipeline needs at least one source block"]


class TestShareEndpoints:
    """Tests for sharing pipelines through tokens."""

    def test_share_and_load(self, client: TestClient, chain_pipeline: PipelineModel) -> None:
        """A shared token loads back to the same pipeline."""
        share = client.post("/api/share", json=_body(chain_pipeline)).json()

        assert share["token"] == encode(chain_pipeline)
        assert share["tooLarge"] is False
        assert share["stats"]["compressedSize"] == len(share["token"])

        response = client.get(f"/api/share/{share['token']}")

        assert response.status_code == 200
        assert PipelineModel.model_validate(response.json()) == chain_pipeline

    def test_share_respects_configured_limit(
        self, sample_catalogue: Catalogue, chain_pipeline: PipelineModel
    ) -> None:
        """tooLarge uses the limit the server was configured with."""
        configure(catalogue=sample_catalogue, max_token_length=10)
        client = TestClient(app)

        share = client.post("/api/share", json=_body(chain_pipeline)).json()

        assert share["tooLarge"] is True
        assert decode(share["token"]) == chain_pipeline

    def test_load_invalid_token(self, client: TestClient) -> None:
        """Corrupted tokens are a client error."""
        response = client.get("/api/share/invalid-string")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or corrupted pipeline token"


class TestEditEndpoints:
    """Tests for block removal and pipeline generation."""

    def test_remove_block(self, client: TestClient, chain_pipeline: PipelineModel) -> None:
        """Removing a block leaves its consumers unconnected."""
        response = client.post(
            "/api/blocks/avg/remove", json={"pipeline": _body(chain_pipeline)}
        )

        assert response.status_code == 200
        blocks = response.json()["blocks"]
        assert set(blocks) == {"src", "out"}
        assert blocks["out"]["input_ids"] == {"data": None}

    def test_remove_block_cascade(
        self, client: TestClient, chain_pipeline: PipelineModel
    ) -> None:
        """With cascade the downstream blocks go too."""
        response = client.post(
            "/api/blocks/avg/remove",
            json={"pipeline": _body(chain_pipeline), "cascade": True},
        )

        assert set(response.json()["blocks"]) == {"src"}

    def test_remove_unknown_block(self, client: TestClient, chain_pipeline: PipelineModel) -> None:
        """Removing a block that is not there is a 404."""
        response = client.post(
            "/api/blocks/ghost/remove", json={"pipeline": _body(chain_pipeline)}
        )

        assert response.status_code == 404
        assert "ghost" in response.json()["detail"]

    def test_generate(self, client: TestClient) -> None:
        """A plugin's factories come back as a wired pipeline."""
        response = client.post("/api/generate", params={"plugin": "core"})

        assert response.status_code == 200
        blocks = response.json()["blocks"]
        assert blocks["transform_1"]["input_ids"] == {"data": "source_1"}

    def test_generate_unknown_plugin(self, client: TestClient) -> None:
        """Unknown plugins are a 404."""
        response = client.post("/api/generate", params={"plugin": "nope"})

        assert response.status_code == 404


class TestServerCLI:
    """Tests for the fable-builder-ui entry point."""

    def test_missing_catalogue_returns_error(self, capsys) -> None:
        """Without a catalogue the server does not start."""
        from fable_builder.ui.cli import main

        with patch("sys.argv", ["fable-builder-ui"]), \
             patch("fable_builder.ui.cli.uvicorn.run") as mock_uvicorn:
            result = main()

        assert result == 1
        assert "No catalogue given" in capsys.readouterr().out
        mock_uvicorn.assert_not_called()

    def test_settings_configure_server(self) -> None:
        """Catalogue and token limit from settings reach the server."""
        from fable_builder.ui.cli import main

        settings = Path(__file__).parent.parent / "examples" / "quick-start" / "fable-builder.yml"

        with patch("sys.argv", ["fable-builder-ui", "--settings", str(settings)]), \
             patch("fable_builder.ui.cli.uvicorn.run") as mock_uvicorn, \
             patch("fable_builder.ui.server.configure") as mock_configure:
            result = main()

        assert result == 0
        mock_uvicorn.assert_called_once()
        call_kwargs = mock_configure.call_args.kwargs
        assert call_kwargs["catalogue_path"] == settings.parent / "catalogue.yml"
        assert call_kwargs["max_token_length"] == 1800
        assert "ecmwf/ecmwf-base" in call_kwargs["catalogue"]
