"""Tests for the netconf-filter command line."""

import io
import json
from pathlib import Path

import pytest

from netconf_filter.filter_cli import main

FIXTURES = Path(__file__).resolve().parent / "fixtures"
REGISTRY = str(FIXTURES / "registry.json")


@pytest.fixture(autouse=True)
def no_env_registry(monkeypatch):
    monkeypatch.delenv("NETCONF_FILTER_REGISTRY", raising=False)


def test_compile_file(capsys):
    code = main(["--registry", REGISTRY, "compile", str(FIXTURES / "interfaces_filter.xml")])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "/ietf-interfaces:interfaces/interface[type='iana-if-type:ethernetCsmacd']/name",
        "/ietf-interfaces:interfaces/interface[type='iana-if-type:ethernetCsmacd']/enabled",
    ]


def test_compile_stdin_as_json(capsys, monkeypatch):
    monkeypatch.setattr(
        "sys.stdin",
        io.TextIOWrapper(io.BytesIO(b'<filter><top xmlns="urn:example:m"><a>1</a></top></filter>')),
    )
    code = main(["--registry", REGISTRY, "compile", "-", "--json"])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"filters": ["/m:top[a='1']"], "count": 1}


def test_compile_reports_filter_errors(capsys, tmp_path):
    broken = tmp_path / "broken.xml"
    broken.write_text("<filter><top></filter>")
    code = main(["--registry", REGISTRY, "compile", str(broken)])
    assert code == 1
    assert "malformed-message" in capsys.readouterr().err


def test_compile_missing_file(capsys, tmp_path):
    code = main(["--registry", REGISTRY, "compile", str(tmp_path / "missing.xml")])
    assert code == 1
    assert "Cannot read filter" in capsys.readouterr().err


def test_xpath_command(capsys):
    assert main(["xpath", "/m:top"]) == 0
    assert capsys.readouterr().out.strip() == "/m:top"


def test_modules_command(capsys):
    assert main(["--registry", REGISTRY, "modules"]) == 0
    out = capsys.readouterr().out
    assert "m@2024-01-01 (urn:example:m): top, shared" in out
    assert "ietf-interfaces" in out


def test_modules_without_registry(capsys):
    assert main(["modules"]) == 0
    assert "No schema modules registered" in capsys.readouterr().out


def test_unreadable_registry(capsys, tmp_path):
    code = main(["--registry", str(tmp_path / "missing.json"), "modules"])
    assert code == 1
    assert "not found" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([]) == 1


def test_compile_non_utf8_file_is_reported(capsys, tmp_path):
    latin1 = tmp_path / "latin1.xml"
    latin1.write_bytes(b'<filter><top xmlns="urn:example:m"><a>caf\xe9</a></top></filter>')
    code = main(["--registry", REGISTRY, "compile", str(latin1)])
    assert code == 1
    assert "malformed-message" in capsys.readouterr().err
