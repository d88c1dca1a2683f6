import logging
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple, Union

from .exceptions import RouterError
from .navigation import NavigationMode, NavigationSource, probe_navigation_source
from .pattern import Params, RoutePattern, RouteSpec, compile_pattern

logger = logging.getLogger("hashrouter.router")

Handler = Callable[["DispatchContext", "Chain"], Any]


def _route_key(spec: RouteSpec) -> Hashable:
    if isinstance(spec, list):
        return tuple(spec)
    return spec


class Route:
    """A compiled pattern bound to an ordered list of handlers."""

    def __init__(self, pattern: RoutePattern, handlers: Optional[List[Handler]] = None):
        for handler in handlers or []:
            if not callable(handler):
                raise TypeError(f"Route handler {handler!r} is not callable")

        self._pattern = pattern
        self.handlers: List[Handler] = list(handlers or [])

    @property
    def pattern(self) -> RoutePattern:
        return self._pattern

    @property
    def key(self) -> Hashable:
        return _route_key(self._pattern.source)

    def add_handler(self, handler: Handler) -> None:
        if not callable(handler):
            raise TypeError(f"Route handler {handler!r} is not callable")
        self.handlers.append(handler)

    def remove_handler(self, handler: Handler) -> bool:
        """Remove the first occurrence of ``handler`` (by identity). Returns True if found."""
        for index, existing in enumerate(self.handlers):
            if existing is handler:
                del self.handlers[index]
                return True
        return False

    def __repr__(self):
        return f"Route({self._pattern.source!r}, handlers={len(self.handlers)})"


class DispatchContext:
    """State handed to every handler of one dispatch."""

    def __init__(self, path: str, params: Params, route: Route):
        self.path = path
        self.params = params
        self.route = route

    def __repr__(self):
        return f"DispatchContext(path={self.path!r}, params={dict(self.params)!r})"


class Chain:
    """
    Continuation over a route's handlers.

    Each handler is called as ``handler(ctx, next)``; calling ``next()`` runs
    the following handler, and not calling it ends the dispatch there. Once the
    handlers are exhausted ``next()`` does nothing.

    The cursor is shared by every call for the dispatch: a handler that calls
    ``next()`` twice advances it twice, so the second call runs whatever
    handler comes after the one the first call reached.
    """

    def __init__(self, handlers: List[Handler], ctx: DispatchContext):
        self._handlers = tuple(handlers)
        self._ctx = ctx
        self._index = 0

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._handlers)

    def __call__(self) -> None:
        if self.exhausted:
            return  # unhandled
        handler = self._handlers[self._index]
        self._index += 1
        handler(self._ctx, self)


class Router:
    """
    Ordered route table for fragment navigation.

    Routes are tried in registration order and the first structural match wins.

    Example:
        router = Router()
        router.register("/user/:id", load_user, show_profile)
        router.register("*", not_found)
        router.start()
    """

    def __init__(self, sensitive: bool = False, strict: bool = False,
                 mode: Union[NavigationMode, str] = NavigationMode.AUTO, poll_interval: float = 0.1):
        self.sensitive = sensitive
        self.strict = strict
        self.mode = NavigationMode(mode)
        self.poll_interval = poll_interval
        self._routes: List[Route] = []
        self._index: Dict[Hashable, List[Route]] = {}
        self._source: Optional[NavigationSource] = None

    @property
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes)

    def _compile(self, spec: RouteSpec) -> RoutePattern:
        return compile_pattern(spec, sensitive=self.sensitive, strict=self.strict)

    def _append(self, route: Route) -> Route:
        self._routes.append(route)
        self._index.setdefault(route.key, []).append(route)
        logger.debug("Registered route %r with %d handler(s)", route.pattern.source, len(route.handlers))
        return route

    def _drop(self, route: Route) -> None:
        self._routes.remove(route)
        siblings = self._index.get(route.key, [])
        siblings.remove(route)
        if not siblings:
            del self._index[route.key]

    def register(self, spec: RouteSpec, *handlers: Union[Handler, List[Handler]]) -> Route:
        """
        Register a route for ``spec``.

        Handlers may be given as separate arguments or as a single list:

            router.register("/admin", require_login, show_admin)
            router.register("/admin", [require_login, show_admin])
        """
        if len(handlers) == 1 and isinstance(handlers[0], (list, tuple)):
            handlers = handlers[0]
        return self._append(Route(self._compile(spec), list(handlers)))

    def register_map(self, routes: Mapping[Any, Union[Handler, List[Handler]]]) -> "Router":
        """Register every ``spec: handler(s)`` item of ``routes``, in mapping order."""
        for spec, handlers in routes.items():
            self.register(spec, handlers)
        return self

    def add_handler(self, spec: RouteSpec, handler: Handler) -> Route:
        """Append ``handler`` to the route registered for ``spec``, creating the route if needed."""
        routes = self._index.get(_route_key(spec))
        if not routes:
            return self.register(spec, handler)

        routes[0].add_handler(handler)
        return routes[0]

    def on(self, spec: RouteSpec) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_handler:

            @router.on("/user/:id")
            def show_user(ctx, next):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.add_handler(spec, handler)
            return handler

        return decorator

    def unregister(self, spec: RouteSpec, handler: Optional[Handler] = None) -> "Router":
        """
        Remove ``handler`` from the route for ``spec``, or the whole route.

        A route left without handlers is removed. Unknown specs are ignored.
        """
        routes = list(self._index.get(_route_key(spec), []))
        if not routes:
            logger.debug("Ignoring unregister of unknown route %r", spec)
            return self

        if handler is None:
            for route in routes:
                self._drop(route)
            return self

        for route in routes:
            if route.remove_handler(handler):
                if not route.handlers:
                    self._drop(route)
                break
        return self

    def dispatch(self, fragment: str) -> bool:
        """
        Run the handlers of the first route matching ``fragment``.

        Returns False when no route matches. Exceptions raised by handlers
        propagate to the caller.
        """
        for route in self._routes:
            params = route.pattern.match(fragment)
            if params is None:
                continue

            ctx = DispatchContext(fragment, params, route)
            Chain(route.handlers, ctx)()
            return True

        logger.debug("No route matched for fragment: %s", fragment)
        return False

    def start(self, source: Optional[NavigationSource] = None) -> "Router":
        """
        Dispatch the current fragment and every later change reported by ``source``.

        Without a source, one is probed from the browser window using the
        router's ``mode`` and ``poll_interval``.
        """
        if self._source is not None:
            raise RouterError("Router is already started")

        if source is None:
            source = probe_navigation_source(mode=self.mode, poll_interval=self.poll_interval)

        self._source = source
        source.subscribe(self.dispatch)
        self.dispatch(source.current())
        return self

    def stop(self) -> None:
        if self._source is None:
            return
        self._source.unsubscribe()
        self._source = None
