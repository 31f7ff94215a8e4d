import pytest
from typer.testing import CliRunner

from homework_catalog.cli import app
from homework_catalog.config.loader import CONFIG_ENV_VAR, STORE_ENV_VAR

runner = CliRunner()


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv(STORE_ENV_VAR, str(tmp_path / "store"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_ingest_list_show_export(env, batch_zip, student_zip):
    archive = env / "batch.zip"
    archive.write_bytes(batch_zip)

    result = runner.invoke(app, ["ingest", str(archive)])
    assert result.exit_code == 0, result.output
    assert "Loaded 3 submissions" in result.output

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "Jane Doe" in result.output
    assert "unknown-1" in result.output

    result = runner.invoke(app, ["show", "12345", "--file", "src/main.cpp"])
    assert result.exit_code == 0
    assert "int main()" in result.output

    result = runner.invoke(app, ["export", "12345", str(env / "out")])
    assert result.exit_code == 0
    assert (env / "out" / "hw+12345+Jane_Doe+extra+SECTION_A.zip").read_bytes() == student_zip


def test_ingest_corrupt_archive(env):
    archive = env / "bad.zip"
    archive.write_bytes(b"garbage")

    result = runner.invoke(app, ["ingest", str(archive)])

    assert result.exit_code == 1
    assert "Error processing file" in result.output


def test_references_and_select(env, batch_zip):
    archive = env / "batch.zip"
    archive.write_bytes(batch_zip)
    solution = env / "main.cpp"
    solution.write_text("int main() { return 1; }\n", encoding="utf-8")

    runner.invoke(app, ["ingest", str(archive)])
    result = runner.invoke(app, ["references", str(solution)])
    assert result.exit_code == 0
    assert "1 files" in result.output

    result = runner.invoke(app, ["select", "12345", "--file", "src/main.cpp", "--reference", "main.cpp"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["select", "99999"])
    assert result.exit_code == 1


def test_show_unknown_student(env):
    result = runner.invoke(app, ["show", "nobody"])

    assert result.exit_code == 1


def test_clear(env, batch_zip):
    archive = env / "batch.zip"
    archive.write_bytes(batch_zip)
    runner.invoke(app, ["ingest", str(archive)])

    result = runner.invoke(app, ["clear", "--yes"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["list"])
    assert "No submissions loaded." in result.output


def test_missing_config_file(env):
    result = runner.invoke(app, ["--config", "nope.yml", "list"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid configuration" in result.output


def test_invalid_duplicate_policy(env):
    (env / "catalog.yml").write_text("ingest:\n  duplicate_policy: newest\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", "catalog.yml", "list"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "duplicate_policy" in result.output


def test_malformed_yaml(env):
    (env / "catalog.yml").write_text("ingest: [unclosed\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", "catalog.yml", "list"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid configuration" in result.output


def test_clear_reports_storage_error(env):
    # a directory where a saved file should be cannot be unlinked
    blocked = env / "store" / "grading-submissions.json"
    blocked.mkdir(parents=True)
    (blocked / "keep").write_text("x", encoding="utf-8")

    result = runner.invoke(app, ["clear", "--yes"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Could not delete" in result.output
