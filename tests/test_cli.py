from pathlib import Path

import yaml
from click.testing import CliRunner

from postpress import __version__
from postpress.cli import cli


def create_site(tmp_path: Path) -> Path:
    source = tmp_path / "site"
    (source / "_layouts").mkdir(parents=True)
    (source / "_posts").mkdir()
    (source / "_layouts" / "post.html").write_text("{{ content }}", encoding="utf-8")
    (source / "_posts" / "2016-02-09-indexes.md").write_text(
        "---\nlayout: post\ntitle: Indexes\ndate: 2016-02-09\n---\nHello\n",
        encoding="utf-8",
    )
    return source


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build_success(tmp_path):
    source = create_site(tmp_path)
    out = tmp_path / "out"
    result = CliRunner().invoke(cli, ["build", str(source), str(out)])
    assert result.exit_code == 0, result.output
    assert "Built 1 posts" in result.output
    assert (out / "2016" / "02" / "09" / "indexes" / "index.html").exists()


def test_cli_build_reports_malformed_post(tmp_path):
    source = create_site(tmp_path)
    (source / "_posts" / "2017-01-01-broken.md").write_text(
        "no front matter here\n", encoding="utf-8"
    )
    out = tmp_path / "out"
    result = CliRunner().invoke(cli, ["build", str(source), str(out)])
    assert result.exit_code == 1
    assert "Build failed: 1 error(s)" in result.output
    assert "2017-01-01-broken.md" in result.output
    assert "MalformedPostError" in result.output
    assert (out / "2016" / "02" / "09" / "indexes" / "index.html").exists()


def test_cli_build_rejects_source_as_destination(tmp_path):
    source = create_site(tmp_path)
    result = CliRunner().invoke(cli, ["build", str(source), str(source)])
    assert result.exit_code == 1
    assert "Refusing to build" in result.output
    assert (source / "_posts" / "2016-02-09-indexes.md").exists()


def test_cli_build_missing_source(tmp_path):
    result = CliRunner().invoke(cli, ["build", str(tmp_path / "nope"), str(tmp_path / "out")])
    assert result.exit_code == 2


def test_cli_check(tmp_path):
    source = create_site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["check", str(source)])
    assert result.exit_code == 0
    assert "All posts are valid" in result.output

    (source / "_posts" / "2017-01-01-odd.md").write_text(
        "---\nlayout: gallery\ntitle: Odd\ndate: 2017-01-01\n---\n", encoding="utf-8"
    )
    result = runner.invoke(cli, ["check", str(source)])
    assert result.exit_code == 1
    assert "UnknownLayoutError" in result.output
    assert "2017-01-01-odd.md" in result.output


def test_cli_new_creates_post(tmp_path):
    source = tmp_path / "site"
    source.mkdir()
    runner = CliRunner()
    result = runner.invoke(
        cli, ["new", str(source), "Window Functions", "--category", "sql", "--category", "postgres"]
    )
    assert result.exit_code == 0, result.output
    (created,) = (source / "_posts").iterdir()
    assert created.name.endswith("-window-functions.md")
    text = created.read_text(encoding="utf-8")
    header = yaml.safe_load(text.split("---\n")[1])
    assert header["title"] == "Window Functions"
    assert header["layout"] == "post"
    assert header["categories"] == "sql postgres"

    result = runner.invoke(cli, ["new", str(source), "Window Functions"])
    assert result.exit_code == 1
    assert "already exists" in result.output
