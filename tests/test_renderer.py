"""Tests for warbler.templating.renderer — entry injection and variables."""

import pytest

from warbler.errors import RenderError
from warbler.pages.table import build_route_table
from warbler.pages.types import Page
from warbler.templating.renderer import TemplateRenderer, entry_script, inject_entry

HTML = "<html><body><h1>Hi</h1></body></html>"


class TestInjectEntry:
    def test_inserted_before_body_close(self) -> None:
        result = inject_entry(HTML, "/src/a.ts")
        assert result == (
            '<html><body><h1>Hi</h1><script type="module" src="/src/a.ts"></script>\n'
            "</body></html>"
        )

    def test_case_insensitive(self) -> None:
        result = inject_entry("<BODY>x</BODY >", "/a.ts")
        assert result.index("<script") < result.index("</BODY >")

    def test_only_first_body_close(self) -> None:
        result = inject_entry("<body></body><!-- </body> -->", "/a.ts")
        assert result.count("<script") == 1
        assert result.index("<script") < result.index("</body>")

    def test_no_body_returns_same_object(self) -> None:
        source = "<div>fragment</div>"
        assert inject_entry(source, "/a.ts") is source

    def test_script_src_escaped(self) -> None:
        assert entry_script('/a".ts') == '<script type="module" src="/a&quot;.ts"></script>'


class TestRender:
    def test_unchanged_returns_same_object(self) -> None:
        renderer = TemplateRenderer(variables={"MODE": "dev"})
        source = "".join(["<html><body>", "plain", "</body></html>"])
        assert renderer.render(Page("a"), source) is source

    def test_no_markup_no_entry_is_identity(self) -> None:
        renderer = TemplateRenderer()
        source = "<p>{ not markup }</p>"
        assert renderer.render(Page("a"), source) is source

    def test_comment_markup_rendered(self) -> None:
        renderer = TemplateRenderer()
        source = "<p>{# comment #}</p>"
        result = renderer.render(Page("a"), source)
        assert result == "<p></p>"

    def test_entry_injected(self) -> None:
        renderer = TemplateRenderer()
        result = renderer.render(Page("a", entry="/src/a.ts"), HTML)
        assert '<script type="module" src="/src/a.ts"></script>' in result

    def test_entry_script_before_body_close(self) -> None:
        renderer = TemplateRenderer()
        result = renderer.render(Page("a", entry="/src/a.ts"), HTML)
        assert result.index('src="/src/a.ts"') < result.index("</body>")

    def test_missing_body_skips_injection(self, caplog) -> None:
        renderer = TemplateRenderer()
        source = "<div>no body</div>"
        with caplog.at_level("WARNING", logger="warbler.server"):
            assert renderer.render(Page("a", entry="/a.ts"), source) is source
        assert "not injected" in caplog.text

    def test_page_data(self) -> None:
        renderer = TemplateRenderer()
        result = renderer.render(Page("a", data={"title": "About"}), "<title>{{ title }}</title>")
        assert result == "<title>About</title>"

    def test_environment_variables(self) -> None:
        renderer = TemplateRenderer(variables={"MODE": "development"})
        assert renderer.render(Page("a"), "{{ MODE }}") == "development"

    def test_page_data_overrides_variables(self) -> None:
        renderer = TemplateRenderer(variables={"title": "Env"})
        result = renderer.render(Page("a", data={"title": "Page"}), "{{ title }}")
        assert result == "Page"

    def test_autoescape(self) -> None:
        renderer = TemplateRenderer()
        result = renderer.render(Page("a", data={"x": "<b>"}), "{{ x }}")
        assert result == "&lt;b&gt;"

    def test_autoescape_off(self) -> None:
        renderer = TemplateRenderer(autoescape=False)
        assert renderer.render(Page("a", data={"x": "<b>"}), "{{ x }}") == "<b>"

    def test_syntax_error_raises_render_error(self) -> None:
        renderer = TemplateRenderer()
        with pytest.raises(RenderError) as exc_info:
            renderer.render(Page("a"), "{% if %}", filename="src/a.html")
        assert exc_info.value.filename == "src/a.html"
        assert exc_info.value.page == "a"


class TestLoad:
    @pytest.fixture
    def root(self, tmp_path):
        (tmp_path / "index.html").write_text(HTML)
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "about.html").write_text("<body>about</body>")
        return tmp_path

    async def test_default_template(self, root) -> None:
        table = build_route_table([Page("a")])
        renderer = TemplateRenderer(root)
        assert await renderer.load(table.by_path["a.html"], table) == HTML

    async def test_page_template(self, root) -> None:
        table = build_route_table([Page("about", template="src/about.html")])
        renderer = TemplateRenderer(root)
        assert await renderer.load(table.by_path["about.html"], table) == "<body>about</body>"

    async def test_missing_template(self, root) -> None:
        table = build_route_table([Page("x", template="src/missing.html")])
        renderer = TemplateRenderer(root)
        with pytest.raises(RenderError, match="Template not found") as exc_info:
            await renderer.load(table.by_path["x.html"], table)
        assert exc_info.value.filename == "src/missing.html"

    async def test_render_page(self, root) -> None:
        table = build_route_table([Page("about", entry="/src/about.ts", template="src/about.html")])
        renderer = TemplateRenderer(root)
        result = await renderer.render_page(table.by_path["about.html"], table)
        assert result == '<body>about<script type="module" src="/src/about.ts"></script>\n</body>'


class TestRepeatRender:
    TEMPLATE = "<html><head><title>{{ title }}</title></head><body>{{ MODE }}</body></html>"

    @pytest.fixture
    def root(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "page.html").write_text(self.TEMPLATE)
        return tmp_path

    def test_render_twice_is_identical(self) -> None:
        renderer = TemplateRenderer(variables={"MODE": "development"})
        page = Page("a", entry="/src/a.ts", data={"title": "About"})
        first = renderer.render(page, self.TEMPLATE)
        second = renderer.render(page, self.TEMPLATE)
        assert first == second
        assert first.count('<script type="module" src="/src/a.ts"></script>') == 1
        assert "<title>About</title>" in first
        assert dict(page.data) == {"title": "About"}

    async def test_render_page_twice_is_identical(self, root) -> None:
        table = build_route_table(
            [Page("a", entry="/src/a.ts", template="src/page.html", data={"title": "About"})]
        )
        page = table.by_path["a.html"]
        renderer = TemplateRenderer(root, variables={"MODE": "development"})
        first = await renderer.render_page(page, table)
        second = await renderer.render_page(page, table)
        assert first == second
        assert first.count('src="/src/a.ts"') == 1
        assert (root / "src" / "page.html").read_text() == self.TEMPLATE
        assert dict(page.data) == {"title": "About"}
