"""
Browser navigation sources.

A navigation source reports the current location fragment and calls back
whenever it changes. The router only depends on that interface; which
browser channel delivers the change (popstate, hashchange or polling) is
decided once by ``probe_navigation_source``.

The ``window`` object and the ``create_proxy`` factory default to Pyodide's
``js.window`` and ``pyodide.ffi.create_proxy``; both can be passed in
explicitly, e.g. to drive a router outside the browser.
"""
from enum import Enum
from typing import Any, Callable, Optional

FragmentCallback = Callable[[str], Any]


class NavigationMode(Enum):
    AUTO = "auto"
    POPSTATE = "popstate"
    HASHCHANGE = "hashchange"
    POLLING = "polling"


def _browser_window():
    from js import window
    return window


def _browser_create_proxy():
    from pyodide.ffi import create_proxy
    return create_proxy


def read_fragment(location) -> str:
    """
    Get the routable fragment from a location object.

    Both ``#!/path`` and ``#/path`` forms are accepted. With no fragment at
    all, the site root reads as the home path "/".
    """
    hash_part = location.hash or ""
    if hash_part.startswith("#!"):
        return hash_part[2:]
    if hash_part.startswith("#"):
        return hash_part[1:]

    if location.pathname == "/":
        return "/"
    return ""


class NavigationSource:
    """Base class for the ways a browser can report fragment changes."""

    def __init__(self, window=None):
        self.window = window if window is not None else _browser_window()
        self._callback: Optional[FragmentCallback] = None

    @property
    def subscribed(self) -> bool:
        return self._callback is not None

    def current(self) -> str:
        return read_fragment(self.window.location)

    def subscribe(self, callback: FragmentCallback) -> None:
        raise NotImplementedError

    def unsubscribe(self) -> None:
        raise NotImplementedError

    def _notify(self, *args) -> None:
        if self._callback is not None:
            self._callback(self.current())


class EventNavigationSource(NavigationSource):
    """Listens for a window event such as ``popstate`` or ``hashchange``."""

    def __init__(self, window=None, event: str = "popstate", create_proxy: Optional[Callable] = None):
        super().__init__(window)
        self.event = event
        self._create_proxy = create_proxy or _browser_create_proxy()
        self._listener_proxy = None

    def subscribe(self, callback: FragmentCallback) -> None:
        if self._listener_proxy is not None:
            self.unsubscribe()

        self._callback = callback
        self._listener_proxy = self._create_proxy(self._notify)
        self.window.addEventListener(self.event, self._listener_proxy)

    def unsubscribe(self) -> None:
        if self._listener_proxy is None:
            return

        self.window.removeEventListener(self.event, self._listener_proxy)
        self._listener_proxy.destroy()
        self._listener_proxy = None
        self._callback = None


class PollingNavigationSource(NavigationSource):
    """Checks the fragment on an interval, for hosts without change events."""

    def __init__(self, window=None, interval: float = 0.1, create_proxy: Optional[Callable] = None):
        super().__init__(window)
        self.interval = interval
        self._create_proxy = create_proxy or _browser_create_proxy()
        self._tick_proxy = None
        self._timer_id = None
        self._last_fragment: Optional[str] = None

    def subscribe(self, callback: FragmentCallback) -> None:
        if self._tick_proxy is not None:
            self.unsubscribe()

        self._callback = callback
        self._last_fragment = self.current()
        self._tick_proxy = self._create_proxy(self._tick)
        self._timer_id = self.window.setInterval(self._tick_proxy, int(self.interval * 1000))

    def unsubscribe(self) -> None:
        if self._tick_proxy is None:
            return

        self.window.clearInterval(self._timer_id)
        self._tick_proxy.destroy()
        self._tick_proxy = None
        self._timer_id = None
        self._callback = None

    def _tick(self, *args) -> None:
        fragment = self.current()
        if fragment == self._last_fragment:
            return
        self._last_fragment = fragment
        if self._callback is not None:
            self._callback(fragment)


def _supports(window, event: str) -> bool:
    return getattr(window, f"on{event}", False) is not False


def probe_navigation_source(window=None, mode: NavigationMode = NavigationMode.AUTO,
                            poll_interval: float = 0.1,
                            create_proxy: Optional[Callable] = None) -> NavigationSource:
    """
    Pick the navigation source for ``window``.

    In AUTO mode ``popstate`` is preferred, then ``hashchange``, and polling
    is used when the window supports neither event.
    """
    window = window if window is not None else _browser_window()
    mode = NavigationMode(mode)

    if mode == NavigationMode.AUTO:
        if _supports(window, "popstate"):
            mode = NavigationMode.POPSTATE
        elif _supports(window, "hashchange"):
            mode = NavigationMode.HASHCHANGE
        else:
            window.console.warn("No navigation change events available, polling location.hash")
            mode = NavigationMode.POLLING

    if mode == NavigationMode.POLLING:
        return PollingNavigationSource(window, interval=poll_interval, create_proxy=create_proxy)
    return EventNavigationSource(window, event=mode.value, create_proxy=create_proxy)
