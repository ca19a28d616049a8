import tomllib
from pathlib import Path


def _pyproject() -> dict:
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    return tomllib.loads(pyproject_path.read_text(encoding="utf-8"))


def test_pyproject_declares_runtime_stack():
    dependencies = " ".join(_pyproject()["project"]["dependencies"])

    for name in ("pydantic", "pydantic-settings", "pyyaml", "typer", "rich"):
        assert name in dependencies


def test_pyproject_exposes_cli_entry_point_and_test_extra():
    payload = _pyproject()["project"]

    assert payload["scripts"]["hotwire"] == "hotwire.cli.main:app"
    assert any(dep.startswith("pytest") for dep in payload["optional-dependencies"]["test"])
