"""Tests for warbler.server.reconcile — table ownership and watch events."""

import asyncio

import pytest

from warbler.config import AppConfig
from warbler.errors import ConfigurationError
from warbler.pages.types import Page, ScanOptions
from warbler.server.reconcile import ReconciliationController
from warbler.server.watch import WatchContext, WatchEvent, WatchOptions


class RecordingBroadcaster:
    """Counts full reloads instead of talking to browsers."""

    def __init__(self) -> None:
        self.reloads = 0

    def full_reload(self) -> None:
        self.reloads += 1


@pytest.fixture
def root(tmp_path):
    (tmp_path / "index.html").write_text("<body></body>")
    (tmp_path / "src" / "views" / "blog").mkdir(parents=True)
    (tmp_path / "src" / "about.html").write_text("<body>about</body>")
    return tmp_path


def make_controller(root, **kwargs):
    config = AppConfig(
        root=root,
        pages=kwargs.pop("pages", (Page("about", template="src/about.html"),)),
        scan_options=ScanOptions(scan_dirs="src/views"),
        **kwargs,
    )
    broadcaster = RecordingBroadcaster()
    return ReconciliationController(config, broadcaster, app="app"), broadcaster


class TestTable:
    def test_initial_table(self, root) -> None:
        controller, _ = make_controller(root)
        assert list(controller.table.by_name) == ["about", "blog"]

    def test_invalid_initial_pages(self, root) -> None:
        with pytest.raises(ConfigurationError):
            make_controller(root, pages=[Page("a/b")])

    def test_reload_pages_publishes_new_table(self, root) -> None:
        controller, _ = make_controller(root)
        before = controller.table
        after = controller.reload_pages([Page("contact")])
        assert controller.table is after
        assert after is not before
        assert list(after.by_name) == ["contact", "blog"]
        assert controller.pages == (Page("contact"),)

    def test_reload_without_pages_reruns_discovery(self, root) -> None:
        controller, _ = make_controller(root)
        (root / "src" / "views" / "news").mkdir()
        controller.reload_pages()
        assert list(controller.table.by_name) == ["about", "blog", "news"]

    def test_failed_reload_keeps_published_table(self, root) -> None:
        controller, _ = make_controller(root)
        before = controller.table
        with pytest.raises(ConfigurationError):
            controller.reload_pages([Page("bad", filename="/bad.html")])
        assert controller.table is before
        assert controller.pages == (Page("about", template="src/about.html"),)

    def test_old_snapshot_unchanged_by_reload(self, root) -> None:
        controller, _ = make_controller(root)
        before = controller.table
        controller.reload_pages([Page("contact")])
        assert "about" in before.by_name
        assert "contact" not in before.by_name

    async def test_refresh(self, root) -> None:
        controller, _ = make_controller(root)
        table = await controller.refresh([Page("contact")])
        assert controller.table is table
        assert "contact" in table.by_name


class TestTemplateReload:
    def test_default_template_change(self, root) -> None:
        controller, broadcaster = make_controller(root)
        assert controller.handle_event(WatchEvent("change", str(root / "index.html")))
        assert broadcaster.reloads == 1

    def test_page_template_change(self, root) -> None:
        controller, broadcaster = make_controller(root)
        assert controller.handle_event(WatchEvent("change", str(root / "src" / "about.html")))
        assert broadcaster.reloads == 1

    def test_unrelated_html_ignored(self, root) -> None:
        controller, broadcaster = make_controller(root)
        assert not controller.handle_event(WatchEvent("change", str(root / "other.html")))
        assert broadcaster.reloads == 0

    def test_non_change_events_ignored(self, root) -> None:
        controller, broadcaster = make_controller(root)
        for kind in ("add", "unlink"):
            controller.handle_event(WatchEvent(kind, str(root / "index.html")))
        assert broadcaster.reloads == 0

    def test_default_template_with_other_extension(self, root) -> None:
        controller, broadcaster = make_controller(root, template="index.htm")
        assert controller.handle_event(WatchEvent("change", str(root / "index.htm")))
        assert broadcaster.reloads == 1

    def test_page_template_with_other_extension(self, root) -> None:
        controller, broadcaster = make_controller(
            root, pages=[Page("about", template="src/about.tpl")]
        )
        assert controller.handle_event(WatchEvent("change", str(root / "src" / "about.tpl")))
        assert broadcaster.reloads == 1

    def test_file_outside_template_set_ignored(self, root) -> None:
        controller, broadcaster = make_controller(root)
        controller.handle_event(WatchEvent("change", str(root / "src" / "about.tpl")))
        assert broadcaster.reloads == 0

    def test_template_set_follows_reload(self, root) -> None:
        controller, broadcaster = make_controller(root)
        controller.reload_pages([Page("contact")])
        controller.handle_event(WatchEvent("change", str(root / "src" / "about.html")))
        assert broadcaster.reloads == 0

    def test_unnormalized_template_path(self, root) -> None:
        controller, broadcaster = make_controller(
            root, pages=[Page("about", template="./src/../src/about.html")]
        )
        controller.handle_event(WatchEvent("change", str(root / "src" / "about.html")))
        assert broadcaster.reloads == 1


class TestWatchHandler:
    def test_bare_handler_receives_every_event(self, root) -> None:
        seen: list[WatchContext] = []
        controller, _ = make_controller(root, watch_options=seen.append)
        controller.handle_event(WatchEvent("add", str(root / "src" / "new.ts")))
        assert len(seen) == 1
        assert seen[0].type == "add"
        assert seen[0].file == "src/new.ts"
        assert seen[0].app == "app"

    def test_handler_runs_after_template_reload(self, root) -> None:
        seen: list[str] = []
        controller, broadcaster = make_controller(
            root, watch_options=lambda ctx: seen.append(ctx.file)
        )
        assert controller.handle_event(WatchEvent("change", str(root / "index.html")))
        assert broadcaster.reloads == 1
        assert seen == ["index.html"]

    def test_event_filter(self, root) -> None:
        seen: list[str] = []
        options = WatchOptions(handler=lambda ctx: seen.append(ctx.type), events=("unlink",))
        controller, _ = make_controller(root, watch_options=options)
        controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        controller.handle_event(WatchEvent("unlink", str(root / "a.ts")))
        assert seen == ["unlink"]

    def test_include_and_exclude(self, root) -> None:
        seen: list[str] = []
        options = WatchOptions(
            handler=lambda ctx: seen.append(ctx.file),
            include="src/*",
            exclude="*.md",
        )
        controller, _ = make_controller(root, watch_options=options)
        for name in ("src/a.ts", "src/b.md", "lib/c.ts"):
            controller.handle_event(WatchEvent("add", str(root / name)))
        assert seen == ["src/a.ts"]

    def test_handler_reloads_pages(self, root) -> None:
        controller, _ = make_controller(
            root, watch_options=lambda ctx: ctx.reload_pages([Page("fresh")])
        )
        controller.handle_event(WatchEvent("add", str(root / "src" / "x.ts")))
        assert "fresh" in controller.table.by_name

    async def test_async_handler(self, root) -> None:
        seen: list[str] = []

        async def handler(ctx: WatchContext) -> None:
            seen.append(ctx.file)

        controller, _ = make_controller(root, watch_options=handler)
        controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        await asyncio.sleep(0)
        assert seen == ["a.ts"]

    async def test_async_handler_failure_logged(self, root, caplog) -> None:
        async def handler(ctx: WatchContext) -> None:
            raise RuntimeError("boom")

        controller, _ = make_controller(root, watch_options=handler)
        controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert "Watch handler failed" in caplog.text

    def test_sync_handler_failure_logged(self, root, caplog) -> None:
        controller, broadcaster = make_controller(
            root, watch_options=lambda ctx: ctx.reload_pages([Page("bad", filename="/bad.html")])
        )
        before = controller.table
        assert controller.handle_event(WatchEvent("change", str(root / "index.html")))
        assert "Watch handler failed" in caplog.text
        assert "ConfigurationError" in caplog.text
        assert controller.table is before
        assert broadcaster.reloads == 1

    async def test_async_handler_refreshes_off_loop(self, root) -> None:
        done = asyncio.Event()

        async def handler(ctx: WatchContext) -> None:
            await ctx.refresh([Page("fresh")])
            done.set()

        controller, _ = make_controller(root, watch_options=handler)
        before = controller.table
        controller.handle_event(WatchEvent("add", str(root / "src" / "x.ts")))
        await asyncio.wait_for(done.wait(), timeout=5)
        assert controller.table is not before
        assert list(controller.table.by_name) == ["fresh", "blog"]
        assert controller.pages == (Page("fresh"),)

    def test_context_exposes_refresh(self, root) -> None:
        seen: list[WatchContext] = []
        controller, _ = make_controller(root, watch_options=seen.append)
        controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        assert seen[0].refresh == controller.refresh
        assert seen[0].reload_pages == controller.reload_pages

    def test_verbose_logs_event(self, root, caplog) -> None:
        controller, _ = make_controller(root, watch_options=lambda ctx: None)
        with caplog.at_level("INFO", logger="warbler.server"):
            controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        assert "file add - a.ts" in caplog.text

    def test_quiet_when_not_verbose(self, root, caplog) -> None:
        controller, _ = make_controller(root, watch_options=lambda ctx: None, verbose=False)
        with caplog.at_level("INFO", logger="warbler.server"):
            controller.handle_event(WatchEvent("add", str(root / "a.ts")))
        assert "file add" not in caplog.text
