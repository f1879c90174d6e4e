import json
from pathlib import Path

from clustermap.core.settings import Settings
from clustermap.jobs.build_dashboard import build_dashboard, main, resolve_source
from clustermap.sources.local.source import LocalFileSource
from clustermap.sources.remote.source import RemoteCsvSource


SAMPLE = Path(__file__).resolve().parents[2] / "data" / "sample_properties.csv"


def test_resolve_source_by_scheme():
    settings = Settings()

    assert isinstance(resolve_source("https://example.com/a.csv", settings), RemoteCsvSource)
    assert isinstance(resolve_source("data/a.csv", settings), LocalFileSource)


def test_sample_file_ingests_cleanly():
    snapshot = build_dashboard(LocalFileSource(SAMPLE))

    assert snapshot["status"] == "ok"
    assert snapshot["ingestion"]["rows_defaulted"] == 0
    assert snapshot["cluster_ids"] == [1, 2, 3, 4]
    assert sum(item["count"] for item in snapshot["aggregates"]) == snapshot["ingestion"]["rows_read"]


def test_build_dashboard_applies_form_filters():
    snapshot = build_dashboard(LocalFileSource(SAMPLE), form={"cluster": "2", "min_bedrooms": "any"})

    assert snapshot["criteria"]["cluster"] == 2
    assert snapshot["criteria"]["min_bedrooms"] is None
    assert all(marker["cluster"] == 2 for marker in snapshot["markers"])


def test_build_dashboard_degrades_to_empty_state(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("just,some,columns\n1,2,3\n", encoding="utf-8")

    snapshot = build_dashboard(LocalFileSource(bad))

    assert snapshot["status"] == "error"
    assert "missing required columns" in snapshot["error"]
    assert snapshot["markers"] == []


def test_main_writes_json_output(tmp_path, monkeypatch):
    monkeypatch.delenv("CLUSTERMAP_SOURCE", raising=False)
    out = tmp_path / "dashboard.json"

    code = main(["--source", str(SAMPLE), "--cluster", "1", "--discover-colors", "--output", str(out)])

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert code == 0
    assert payload["summary"].endswith(" properties")
    assert all(marker["cluster"] == 1 for marker in payload["markers"])


def test_main_returns_error_code_for_missing_file(tmp_path, capsys):
    code = main(["--source", str(tmp_path / "missing.csv")])

    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["status"] == "error"


def test_settings_from_env_falls_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("CLUSTERMAP_INGEST_POLICY", "reject")
    monkeypatch.setenv("CLUSTERMAP_HTTP_TIMEOUT", "soon")
    monkeypatch.setenv("CLUSTERMAP_FETCH_ATTEMPTS", "0")
    monkeypatch.setenv("CLUSTERMAP_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.ingest_policy.value == "reject"
    assert settings.http_timeout_seconds == 20.0
    assert settings.fetch_attempts == 1
    assert settings.log_level == 10
