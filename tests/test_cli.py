"""Tests for the command-line entry point."""

import pytest

from openaq_dashboard.__main__ import build_parser, main
from openaq_dashboard.core.client import OpenAQClient
from openaq_dashboard.storage.parameter_store import ParameterStore

from conftest import make_response


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_sync_parameters_command(monkeypatch, tmp_path, client, session, capsys):
    session.replies = [make_response(body={"results": [{"id": 2, "name": "pm25"}]})]
    monkeypatch.setattr(OpenAQClient, "from_settings", classmethod(lambda cls, cfg: client))
    db = str(tmp_path / "params.duckdb")

    assert main(["sync-parameters", "--db", db]) == 0
    assert "Parameters synced: 1" in capsys.readouterr().out

    store = ParameterStore(db)
    try:
        assert store.count() == 1
    finally:
        store.close()


def test_sync_parameters_upstream_failure(monkeypatch, tmp_path, client, session):
    session.replies = [make_response(500, text="boom")]
    monkeypatch.setattr(OpenAQClient, "from_settings", classmethod(lambda cls, cfg: client))
    assert main(["sync-parameters", "--db", str(tmp_path / "p.duckdb")]) == 1
