import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from hashrouter.navigation import (
    EventNavigationSource,
    NavigationMode,
    PollingNavigationSource,
    probe_navigation_source,
    read_fragment,
)
from hashrouter.router import Router


def fake_create_proxy():
    # Proxies behave like the wrapped callable and expose destroy().
    return MagicMock(side_effect=lambda fn: MagicMock(side_effect=fn))


def fake_window(hash_part="", pathname="/", **attributes):
    window = MagicMock(**attributes)
    window.location = SimpleNamespace(hash=hash_part, pathname=pathname)
    return window


class TestReadFragment(unittest.TestCase):
    def test_hashbang(self):
        self.assertEqual(read_fragment(SimpleNamespace(hash="#!/user/1", pathname="/app")), "/user/1")

    def test_plain_hash(self):
        self.assertEqual(read_fragment(SimpleNamespace(hash="#/about", pathname="/app")), "/about")

    def test_home(self):
        self.assertEqual(read_fragment(SimpleNamespace(hash="", pathname="/")), "/")

    def test_no_fragment_outside_home(self):
        self.assertEqual(read_fragment(SimpleNamespace(hash="", pathname="/app")), "")


class TestEventNavigationSource(unittest.TestCase):
    def test_subscribe_listens_for_event(self):
        window = fake_window("#/start")
        create_proxy = fake_create_proxy()
        source = EventNavigationSource(window, event="hashchange", create_proxy=create_proxy)
        received = []

        source.subscribe(received.append)
        self.assertTrue(source.subscribed)
        event, listener = window.addEventListener.call_args[0]
        self.assertEqual(event, "hashchange")

        window.location.hash = "#/next"
        listener(MagicMock())
        self.assertEqual(received, ["/next"])

    def test_current(self):
        source = EventNavigationSource(fake_window("#!/x"), create_proxy=fake_create_proxy())
        self.assertEqual(source.current(), "/x")

    def test_unsubscribe_releases_proxy(self):
        window = fake_window()
        source = EventNavigationSource(window, create_proxy=fake_create_proxy())
        source.subscribe(lambda fragment: None)
        listener = window.addEventListener.call_args[0][1]

        source.unsubscribe()
        window.removeEventListener.assert_called_once_with("popstate", listener)
        listener.destroy.assert_called_once()
        self.assertFalse(source.subscribed)

        source.unsubscribe()
        window.removeEventListener.assert_called_once()

    def test_resubscribe_replaces_listener(self):
        window = fake_window()
        source = EventNavigationSource(window, create_proxy=fake_create_proxy())
        source.subscribe(lambda fragment: None)
        source.subscribe(lambda fragment: None)

        self.assertEqual(window.addEventListener.call_count, 2)
        window.removeEventListener.assert_called_once()


class TestPollingNavigationSource(unittest.TestCase):
    def test_notifies_only_on_change(self):
        window = fake_window("#/a")
        source = PollingNavigationSource(window, interval=0.25, create_proxy=fake_create_proxy())
        received = []

        source.subscribe(received.append)
        tick, delay = window.setInterval.call_args[0]
        self.assertEqual(delay, 250)

        tick()
        self.assertEqual(received, [])

        window.location.hash = "#/b"
        tick()
        tick()
        self.assertEqual(received, ["/b"])

    def test_unsubscribe_clears_interval(self):
        window = fake_window()
        window.setInterval.return_value = 7
        source = PollingNavigationSource(window, create_proxy=fake_create_proxy())
        source.subscribe(lambda fragment: None)
        tick = window.setInterval.call_args[0][0]

        source.unsubscribe()
        window.clearInterval.assert_called_once_with(7)
        tick.destroy.assert_called_once()


class TestProbe(unittest.TestCase):
    def test_prefers_popstate(self):
        source = probe_navigation_source(fake_window(), create_proxy=fake_create_proxy())
        self.assertIsInstance(source, EventNavigationSource)
        self.assertEqual(source.event, "popstate")

    def test_falls_back_to_hashchange(self):
        window = MagicMock(spec=["location", "console", "onhashchange", "addEventListener"])
        source = probe_navigation_source(window, create_proxy=fake_create_proxy())
        self.assertIsInstance(source, EventNavigationSource)
        self.assertEqual(source.event, "hashchange")

    def test_falls_back_to_polling(self):
        window = MagicMock(spec=["location", "console", "setInterval", "clearInterval"])
        source = probe_navigation_source(window, poll_interval=0.5, create_proxy=fake_create_proxy())
        self.assertIsInstance(source, PollingNavigationSource)
        self.assertEqual(source.interval, 0.5)
        window.console.warn.assert_called_once()

    def test_explicit_mode(self):
        source = probe_navigation_source(fake_window(), mode="hashchange", create_proxy=fake_create_proxy())
        self.assertEqual(source.event, "hashchange")

        source = probe_navigation_source(fake_window(), mode=NavigationMode.POLLING, create_proxy=fake_create_proxy())
        self.assertIsInstance(source, PollingNavigationSource)

    def test_invalid_mode(self):
        with self.assertRaises(ValueError):
            probe_navigation_source(fake_window(), mode="telepathy", create_proxy=fake_create_proxy())


class TestRouterWithBrowserSource(unittest.TestCase):
    def test_router_follows_hash_changes(self):
        window = fake_window("", pathname="/")
        source = EventNavigationSource(window, create_proxy=fake_create_proxy())
        router = Router()
        seen = []
        router.register("/", lambda ctx, next: seen.append("home"))
        router.register("/user/:id", lambda ctx, next: seen.append(ctx.params["id"]))

        router.start(source)
        listener = window.addEventListener.call_args[0][1]
        window.location.hash = "#!/user/12"
        listener(MagicMock())
        self.assertEqual(seen, ["home", "12"])

        router.stop()
        self.assertFalse(source.subscribed)


if __name__ == '__main__':
    unittest.main()
