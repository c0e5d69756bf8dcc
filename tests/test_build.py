from pathlib import Path

import pytest

from postpress.build import build_site, check_site, output_path_for
from postpress.errors import (
    BuildError,
    ConfigError,
    DuplicatePermalinkError,
    MalformedPostError,
    TemplateRenderError,
    UnknownLayoutError,
)


def write_post(source: Path, name: str, frontmatter: str, body: str = "Hello\n") -> Path:
    path = source / "_posts" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{frontmatter}---\n{body}", encoding="utf-8")
    return path


def create_site(tmp_path: Path, config: str = "title: Test Blog\n") -> Path:
    source = tmp_path / "site"
    (source / "_layouts").mkdir(parents=True)
    (source / "_layouts" / "post.html").write_text(
        "<h1>{{ page.title }}</h1>\n{{ content }}", encoding="utf-8"
    )
    (source / "_config.yml").write_text(config, encoding="utf-8")
    write_post(
        source,
        "2016-02-09-indexes.md",
        "layout: post\ntitle: Indexes\ndate: 2016-02-09 10:00:00\ncategories: sql\n",
        "Why indexes matter.\n",
    )
    write_post(
        source,
        "2019-04-08-window-functions.md",
        "layout: post\ntitle: Window functions\ndate: 2019-04-08\n",
        "Intro\n\n{% highlight sql %}\nSELECT 1;\n{% endhighlight %}\n",
    )
    return source


def all_files(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


def test_output_path_for(tmp_path):
    assert output_path_for(tmp_path, "/") == tmp_path / "index.html"
    assert output_path_for(tmp_path, "/a/b/") == tmp_path / "a" / "b" / "index.html"
    assert output_path_for(tmp_path, "/a/post.html") == tmp_path / "a" / "post.html"


def test_build_writes_posts_and_index(tmp_path):
    source = create_site(tmp_path)
    out = tmp_path / "out"
    result = build_site(source, out)
    assert result.ok
    assert [p.title for p in result.posts] == ["Window functions", "Indexes"]

    window = (out / "2019" / "04" / "08" / "window-functions" / "index.html").read_text(
        encoding="utf-8"
    )
    assert window.startswith("<h1>Window functions</h1>")
    assert 'data-lang="sql"' in window
    assert (out / "sql" / "2016" / "02" / "09" / "indexes" / "index.html").exists()

    index = (out / "index.html").read_text(encoding="utf-8")
    assert index.index("Window functions") < index.index("Indexes")


def test_build_is_deterministic(tmp_path):
    source = create_site(tmp_path, "title: Test Blog\nurl: https://example.com\n")
    build_site(source, tmp_path / "first")
    build_site(source, tmp_path / "second")
    first = all_files(tmp_path / "first")
    assert "feed.xml" in first
    assert "sitemap.xml" in first
    assert first == all_files(tmp_path / "second")


def test_build_continues_past_bad_posts(tmp_path):
    source = create_site(tmp_path)
    write_post(source, "2020-01-01-broken.md", "layout: post\ntitle: [unclosed\n")
    write_post(
        source,
        "2020-01-02-odd-layout.md",
        "layout: gallery\ntitle: Odd\ndate: 2020-01-02\n",
    )
    out = tmp_path / "out"
    result = build_site(source, out)
    assert not result.ok
    kinds = {type(e): e.source_path.name for e in result.errors}
    assert kinds == {
        MalformedPostError: "2020-01-01-broken.md",
        UnknownLayoutError: "2020-01-02-odd-layout.md",
    }
    assert [p.title for p in result.posts] == ["Window functions", "Indexes"]
    assert not (out / "2020").exists()
    assert "Odd" not in (out / "index.html").read_text(encoding="utf-8")


def test_build_reports_template_failures(tmp_path):
    source = create_site(tmp_path)
    (source / "_layouts" / "bad.html").write_text(
        "{{ page.title.missing() }}", encoding="utf-8"
    )
    write_post(source, "2020-01-01-bad.md", "layout: bad\ntitle: Bad\ndate: 2020-01-01\n")
    result = build_site(source, tmp_path / "out")
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], TemplateRenderError)
    assert result.errors[0].source_path.name == "2020-01-01-bad.md"


def test_build_reports_duplicate_permalinks(tmp_path):
    source = create_site(tmp_path, "title: Test Blog\npermalink: /:title/\n")
    write_post(
        source,
        "2018-01-01-indexes.md",
        "layout: post\ntitle: Indexes revisited\ndate: 2018-01-01\n",
    )
    out = tmp_path / "out"
    result = build_site(source, out)
    assert not result.ok
    assert len(result.errors) == 1
    error = result.errors[0]
    assert isinstance(error, DuplicatePermalinkError)
    assert error.source_path.name == "2016-02-09-indexes.md"
    assert error.kept_path.name == "2018-01-01-indexes.md"
    assert [p.title for p in result.posts] == ["Window functions", "Indexes revisited"]
    page = (out / "indexes" / "index.html").read_text(encoding="utf-8")
    assert page.startswith("<h1>Indexes revisited</h1>")


def test_build_paginates_index(tmp_path):
    source = create_site(tmp_path, "title: Test Blog\npaginate: 1\n")
    out = tmp_path / "out"
    build_site(source, out)
    first = (out / "index.html").read_text(encoding="utf-8")
    second = (out / "page2" / "index.html").read_text(encoding="utf-8")
    assert "Window functions" in first and "Indexes" not in first
    assert "Indexes" in second
    assert not (out / "page3").exists()


def test_build_copies_static_files(tmp_path):
    source = create_site(tmp_path, "title: Test Blog\nexclude:\n  - README.md\n")
    (source / "css").mkdir()
    (source / "css" / "site.css").write_text("body {}", encoding="utf-8")
    (source / "README.md").write_text("notes", encoding="utf-8")
    (source / ".hidden").write_text("x", encoding="utf-8")
    out = tmp_path / "out"
    build_site(source, out)
    assert (out / "css" / "site.css").read_text(encoding="utf-8") == "body {}"
    assert not (out / "README.md").exists()
    assert not (out / ".hidden").exists()
    assert not (out / "_config.yml").exists()
    assert not (out / "_layouts").exists()


def test_build_cleans_previous_output(tmp_path):
    source = create_site(tmp_path)
    out = tmp_path / "out"
    out.mkdir()
    (out / "stale.html").write_text("old", encoding="utf-8")
    build_site(source, out)
    assert not (out / "stale.html").exists()


def test_build_refuses_to_overwrite_source(tmp_path):
    source = create_site(tmp_path)
    with pytest.raises(BuildError):
        build_site(source, source)
    with pytest.raises(BuildError):
        build_site(source, tmp_path)
    assert (source / "_config.yml").exists()


def test_build_rejects_invalid_config(tmp_path):
    source = create_site(tmp_path, "- just\n- a list\n")
    with pytest.raises(ConfigError):
        build_site(source, tmp_path / "out")


def test_build_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_site(tmp_path / "nope", tmp_path / "out")


def test_check_site(tmp_path):
    source = create_site(tmp_path)
    assert check_site(source) == []
    write_post(source, "2020-01-02-odd.md", "layout: gallery\ntitle: Odd\ndate: 2020-01-02\n")
    write_post(source, "2020-01-03-untitled.md", "layout: post\ndate: 2020-01-03\n")
    errors = check_site(source)
    assert sorted(type(e).__name__ for e in errors) == [
        "MissingRequiredFieldError",
        "UnknownLayoutError",
    ]
    assert not (tmp_path / "out").exists()
