"""Request filtering - drop resources that only matter for rendering."""
from typing import Iterable, Optional

from playwright.sync_api import Page, Route

from tabprobe.utils.logger import setup_logger


ROUTE_PATTERN = "**/*"


class RequestFilter:
    """
    Aborts image, stylesheet and font requests on a page.

    Registration is scoped: ``install()`` adds the route handler and
    ``remove()`` takes it off again. Also usable as a context manager.

    Usage:
        request_filter = RequestFilter(page)
        with request_filter:
            page.goto(url)
        print(request_filter.blocked_requests)
    """

    def __init__(self, page: Page, blocked_types: Optional[Iterable[str]] = None):
        self.page = page
        self.blocked_types = frozenset(blocked_types or ("image", "stylesheet", "font"))
        self.blocked_requests = 0
        self.installed = False
        self.logger = setup_logger("RequestFilter")

    def _handle(self, route: Route):
        if route.request.resource_type in self.blocked_types:
            self.blocked_requests += 1
            route.abort()
        else:
            route.continue_()

    def install(self) -> "RequestFilter":
        if not self.installed:
            self.page.route(ROUTE_PATTERN, self._handle)
            self.installed = True
            self.logger.debug(f"Blocking resource types: {sorted(self.blocked_types)}")
        return self

    def remove(self):
        """Unregister the route handler. Safe to call more than once."""
        if not self.installed:
            return
        self.installed = False
        self.page.unroute(ROUTE_PATTERN, self._handle)

    def __enter__(self):
        return self.install()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.remove()
        return False
