from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from quire.build import BuildContext, Site
from quire.config import QuireSettings, RunMode


def test_build_skips_drafts(settings: QuireSettings):
    result = Site(settings).build()
    dist = settings.abs_output_dir

    index = (dist / "index.html").read_text()
    assert "<li>Published</li>" in index
    assert "Secret" not in index
    assert (dist / "posts" / "published" / "index.html").exists()
    assert not (dist / "secret").exists()
    assert settings.abs_input_dir / "posts" / "secret.md" in result.skipped
    assert result.context.drafts_enabled is False


@pytest.mark.parametrize("mode", [RunMode.WATCH, RunMode.SERVE])
def test_interactive_modes_render_drafts(settings: QuireSettings, mode):
    site = Site(settings, run_mode=mode)

    result = site.build()

    assert result.context.drafts_enabled is True
    assert result.skipped == []
    secret = settings.abs_output_dir / "secret" / "index.html"
    assert "Not yet." in secret.read_text()
    assert "<li>Secret</li>" in (settings.abs_output_dir / "index.html").read_text()


def test_build_drafts_setting_renders_drafts_in_build_mode(site_root: Path):
    settings = QuireSettings(root=site_root, build_drafts=True)

    Site(settings).build()

    assert (settings.abs_output_dir / "secret" / "index.html").exists()


def test_markdown_is_rendered_inside_layout(settings: QuireSettings):
    Site(settings).build()

    html = (settings.abs_output_dir / "posts" / "published" / "index.html").read_text()
    assert html.startswith("<!doctype html>")
    assert "<title>Published</title>" in html
    assert "<main><p>Hello.</p></main>" in html


def test_navigation_marks_current_page(settings: QuireSettings):
    Site(settings).build()

    html = (settings.abs_output_dir / "index.html").read_text()
    assert '<a href="/" aria-current="page">Home</a>' in html


def test_passthrough_copies_assets(settings: QuireSettings, write_file):
    write_file("src/assets/css/_vars.scss", "$c: red;")
    write_file("src/assets/css/style.scss", '@import "vars"; body { color: $c; }')
    write_file("src/assets/data.json", '{"ok": true}')

    result = Site(settings).build()
    dist = settings.abs_output_dir

    assert (dist / "assets" / "images" / "logo.svg").read_text() == "<svg></svg>"
    assert dist / "assets" / "images" / "logo.svg" in result.copied
    assert "color:red" in (dist / "assets" / "css" / "style.css").read_text()
    assert not (dist / "assets" / "css" / "_vars.css").exists()
    assert not (dist / "assets" / "css" / "style.scss").exists()
    assert (dist / "assets" / "data.json").read_text() == '{"ok": true}'


def test_passthrough_glob(site_root: Path, write_file):
    write_file("fonts/a.woff2", "font")
    write_file("fonts/sub/b.woff2", "font")
    settings = QuireSettings(root=site_root, passthrough_copy=["fonts/**/*.woff2"])

    Site(settings).build()

    assert (settings.abs_output_dir / "fonts" / "a.woff2").exists()
    assert (settings.abs_output_dir / "fonts" / "sub" / "b.woff2").exists()


def test_missing_passthrough_path_is_skipped(site_root: Path):
    settings = QuireSettings(root=site_root, passthrough_copy=["src/nope"])

    assert Site(settings).build().copied == []


def test_permalink_expressions_are_rendered(settings: QuireSettings, write_file):
    write_file("src/notes/today.md", "---\npermalink: /journal/{{ page.file_slug }}/\n---\nToday.")

    Site(settings).build()

    assert "<p>Today.</p>" in (settings.abs_output_dir / "journal" / "today" / "index.html").read_text()


def test_authored_permalink_false_is_skipped(settings: QuireSettings, write_file):
    path = write_file("src/private.md", "---\npermalink: false\n---\nhidden")

    result = Site(settings).build()

    assert path in result.skipped
    assert not (settings.abs_output_dir / "private").exists()


def test_excluded_page_is_written_but_not_collected(settings: QuireSettings, write_file):
    write_file(
        "src/posts/quiet.md",
        "---\ntitle: Quiet\ndate: 2024-03-01\nexcludeFromCollections: true\n---\nshh",
    )

    Site(settings).build()

    assert (settings.abs_output_dir / "posts" / "quiet" / "index.html").exists()
    assert "Quiet" not in (settings.abs_output_dir / "index.html").read_text()


def test_output_conflict_raises(settings: QuireSettings, write_file):
    write_file("src/a.md", "---\npermalink: /same/\n---\na")
    write_file("src/b.md", "---\npermalink: /same/\n---\nb")

    with pytest.raises(ValueError, match="Output conflict"):
        Site(settings).build()


def test_missing_input_directory(tmp_path: Path):
    with pytest.raises(FileNotFoundError, match="input directory"):
        Site(QuireSettings(root=tmp_path)).build()


def test_output_must_not_contain_sources(site_root: Path):
    settings = QuireSettings(root=site_root, output_dir=Path("."))

    with pytest.raises(ValueError, match="overwrite"):
        Site(settings).build()


def test_stale_output_is_cleaned(settings: QuireSettings):
    stale = settings.abs_output_dir / "old.html"
    stale.parent.mkdir(parents=True)
    stale.write_text("old")

    Site(settings).build()

    assert not stale.exists()


def test_global_data_reaches_templates(settings: QuireSettings, write_file):
    write_file("src/_data/site.yaml", "title: Field Notes\n")
    write_file("src/colophon.html", "<p>{{ site.title }}</p>")

    Site(settings).build()

    assert (settings.abs_output_dir / "colophon" / "index.html").read_text() == "<p>Field Notes</p>"


def test_hooks(settings: QuireSettings):
    site = Site(settings)
    seen = []

    def enable_drafts(context: BuildContext) -> BuildContext:
        seen.append(("before", context.run_mode))
        return dataclasses.replace(context, settings=context.settings.model_copy(update={"build_drafts": True}))

    site.on("before", enable_drafts)
    site.on("after", lambda result: seen.append(("after", len(result.written))))

    result = site.build()

    assert seen[0] == ("before", RunMode.BUILD)
    assert seen[1] == ("after", len(result.written))
    assert (settings.abs_output_dir / "secret" / "index.html").exists()
    # The switch applies to that build only.
    assert site.context.drafts_enabled is False


def test_unknown_hook_event(settings: QuireSettings):
    with pytest.raises(ValueError, match="Unknown event"):
        Site(settings).on("during", lambda context: None)


def test_custom_computed_filter_and_shortcode(settings: QuireSettings, write_file):
    write_file("src/hello.html", "{{ greeting() }} {{ title | shout }} {{ slug }}")
    site = Site(settings)
    site.add_computed("slug", lambda data, ctx: (data.get("title") or "untitled").lower())
    site.add_filter("shout", lambda value: f"{value}!")
    site.add_shortcode("greeting", lambda: "hi")

    site.build()

    assert (settings.abs_output_dir / "hello" / "index.html").read_text() == "hi ! untitled"


def test_discover_ignores_includes_data_and_dotfiles(settings: QuireSettings, write_file):
    write_file("src/_data/x.json", "{}")
    write_file("src/.hidden/page.md", "x")
    write_file("src/notes.txt", "x")

    found = Site(settings).discover()
    relative = sorted(path.relative_to(settings.abs_input_dir).as_posix() for path in found)

    assert relative == ["index.md", "posts/published.md", "posts/secret.md"]


def test_offset_dates_build(settings: QuireSettings, write_file):
    write_file("src/posts/later.md", "---\ntitle: Later\ndate: 2024-05-01T10:00:00+02:00\n---\nlater")

    Site(settings).build()

    assert "<li>Later</li>" in (settings.abs_output_dir / "index.html").read_text()
