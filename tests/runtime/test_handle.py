"""Tests for remote handles.

The client talks to an in-process dispatcher through a mock transport, so
these tests exercise the full RPC round trip without a subprocess.
"""

import pytest

from phantom_bridge.errors import (
    NavigationError,
    NotFoundError,
    ReleasedHandleError,
    RemoteError,
)
from phantom_bridge.runtime.handle import Ref, WebPage
from phantom_bridge.runtime.protocol import OpenSettings, Operations, Rect


class TestWebPageCreate:
    """Tests for allocating pages."""

    def test_create_registers_page(self, client, dispatcher):
        """Test that creating a page adds an entry to the engine registry."""
        page = WebPage.create(client)

        assert page.id in dispatcher.context.registry

    def test_ids_are_distinct_and_increasing(self, client):
        """Test that successive creates never reuse an id."""
        ids = [WebPage.create(client).id for _ in range(5)]

        assert len(set(ids)) == 5
        assert [int(i) for i in ids] == sorted(int(i) for i in ids)

    def test_ids_not_reused_after_close(self, client):
        """Test that closing a page does not free its id for reuse."""
        first = WebPage.create(client)
        first.close()
        second = WebPage.create(client)

        assert second.id != first.id


class TestWebPageOperations:
    """Tests for page operations through the dispatcher."""

    def test_fresh_page_state(self, client):
        """Test a new page has no history and a zero clip rectangle."""
        page = WebPage.create(client)

        assert page.can_go_back() is False
        assert page.can_go_forward() is False
        assert page.clip_rect() == Rect()

    def test_clip_rect_round_trip(self, client):
        """Test that the clip rectangle set is the one read back."""
        page = WebPage.create(client)
        rect = Rect(top=1, left=2, width=3, height=4)

        page.set_clip_rect(rect)

        assert page.clip_rect() == rect

    def test_open_and_content(self, client):
        """Test opening a data URL and reading the markup back."""
        page = WebPage.create(client)

        page.open("data:text/html,<p>hello</p>")

        assert page.content() == "<p>hello</p>"

    def test_history_after_two_opens(self, client):
        """Test that a second navigation enables going back."""
        page = WebPage.create(client)
        page.open("data:text/html,one")
        page.open("data:text/html,two")

        assert page.can_go_back() is True
        assert page.can_go_forward() is False

    def test_open_with_settings(self, client):
        """Test that open accepts explicit settings."""
        page = WebPage.create(client)

        page.open("about:blank", OpenSettings(method="GET"))

        assert "<body>" in page.content()

    def test_failed_open_raises_navigation_error(self, client):
        """Test that a non-success status raises NavigationError."""
        page = WebPage.create(client)

        with pytest.raises(NavigationError) as exc_info:
            page.open("gopher://example.com/")

        assert exc_info.value.url == "gopher://example.com/"
        assert exc_info.value.status == "fail"

    def test_pages_are_independent(self, client):
        """Test that state set on one page does not leak into another."""
        first = WebPage.create(client)
        second = WebPage.create(client)

        first.set_clip_rect(Rect(width=10, height=10))

        assert second.clip_rect() == Rect()


class TestWebPageClose:
    """Tests for releasing pages."""

    def test_close_removes_registry_entry(self, client, dispatcher):
        """Test that close drops the engine-side entry."""
        page = WebPage.create(client)
        page.close()

        assert page.id not in dispatcher.context.registry
        assert page.ref.released is True

    def test_use_after_close_raises_without_round_trip(self, client, dispatcher):
        """Test that a released handle fails on the host side."""
        page = WebPage.create(client)
        page.close()

        with pytest.raises(ReleasedHandleError):
            page.content()
        with pytest.raises(NotFoundError):
            page.close()

    def test_raw_call_on_closed_id_is_remote_error(self, client):
        """Test that the engine reports an unknown ref as a handler fault."""
        page = WebPage.create(client)
        page.close()

        with pytest.raises(RemoteError) as exc_info:
            client.call(Operations.WEBPAGE_CONTENT, {"ref": page.id})

        assert exc_info.value.message == f"/webpage/content: unknown ref: {page.id}"

    def test_context_manager_closes(self, client, dispatcher):
        """Test that leaving the with block closes the page."""
        with WebPage.create(client) as page:
            page_id = page.id

        assert page_id not in dispatcher.context.registry

    def test_context_manager_after_explicit_close(self, client):
        """Test that an explicit close inside the block is not repeated."""
        with WebPage.create(client) as page:
            page.close()

        assert page.ref.released is True


class TestRef:
    """Tests for Ref identity."""

    def test_equality_by_id(self, client):
        """Test that refs with the same id are equal."""
        assert Ref(client, "1") == Ref(client, "1")
        assert Ref(client, "1") != Ref(client, "2")

    def test_hashable(self, client):
        """Test that refs can be used as dict keys."""
        refs = {Ref(client, "1"), Ref(client, "1"), Ref(client, "2")}

        assert len(refs) == 2

    def test_pages_equal_by_ref(self, client):
        """Test that page equality follows the ref."""
        assert WebPage(Ref(client, "3")) == WebPage(Ref(client, "3"))

    def test_repr_shows_release(self, client):
        """Test that the repr marks released refs."""
        ref = Ref(client, "4")
        ref.mark_released()

        assert repr(ref) == "<Ref id=4 released>"


class TestUnknownPath:
    """Tests for paths the dispatcher does not know."""

    def test_unknown_path_raises_not_found(self, client):
        """Test that an unrouted path is a NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            client.invoke("POST", "/webpage/render", {"ref": "1"})

        assert exc_info.value.path == "/webpage/render"
