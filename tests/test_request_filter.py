import pytest

from tabprobe.executor.request_filter import ROUTE_PATTERN, RequestFilter

from conftest import FakePage


class FakeRequest:
    def __init__(self, resource_type):
        self.resource_type = resource_type


class FakeRoute:
    def __init__(self, resource_type):
        self.request = FakeRequest(resource_type)
        self.action = None

    def abort(self):
        self.action = "abort"

    def continue_(self):
        self.action = "continue"


@pytest.mark.parametrize(
    "resource_type, expected",
    [
        ("image", "abort"),
        ("stylesheet", "abort"),
        ("font", "abort"),
        ("document", "continue"),
        ("script", "continue"),
        ("xhr", "continue"),
        ("fetch", "continue"),
    ],
)
def test_only_rendering_resources_are_aborted(resource_type, expected) -> None:
    page = FakePage()
    request_filter = RequestFilter(page).install()
    _, handle = page.routes[0]

    route = FakeRoute(resource_type)
    handle(route)

    assert route.action == expected


def test_blocked_requests_are_counted() -> None:
    page = FakePage()
    request_filter = RequestFilter(page).install()
    _, handle = page.routes[0]

    for resource_type in ("image", "script", "font", "image", "document"):
        handle(FakeRoute(resource_type))

    assert request_filter.blocked_requests == 3


def test_install_is_idempotent_and_remove_unroutes() -> None:
    page = FakePage()
    request_filter = RequestFilter(page)

    request_filter.install()
    request_filter.install()
    assert len(page.routes) == 1
    assert page.routes[0][0] == ROUTE_PATTERN

    request_filter.remove()
    request_filter.remove()
    assert page.routes == []
    assert len(page.unrouted) == 1


def test_context_manager_scopes_registration() -> None:
    page = FakePage()

    with RequestFilter(page):
        assert len(page.routes) == 1

    assert page.routes == []


def test_custom_blocked_types() -> None:
    page = FakePage()
    RequestFilter(page, blocked_types=["media"]).install()
    _, handle = page.routes[0]

    media, image = FakeRoute("media"), FakeRoute("image")
    handle(media)
    handle(image)

    assert media.action == "abort"
    assert image.action == "continue"
