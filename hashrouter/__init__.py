from .pattern import Parameter, Params, RoutePattern, compile_pattern
from .router import Chain, DispatchContext, Route, Router
from .navigation import (
    NavigationMode,
    NavigationSource,
    EventNavigationSource,
    PollingNavigationSource,
    probe_navigation_source,
    read_fragment,
)
from .exceptions import RouterError, PatternError

__all__ = [
    'Parameter',
    'Params',
    'RoutePattern',
    'compile_pattern',
    'Chain',
    'DispatchContext',
    'Route',
    'Router',
    'NavigationMode',
    'NavigationSource',
    'EventNavigationSource',
    'PollingNavigationSource',
    'probe_navigation_source',
    'read_fragment',
    'RouterError',
    'PatternError',
]
