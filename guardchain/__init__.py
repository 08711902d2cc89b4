"""
Guardchain - Build ordered security filter chains for HTTP requests.

A :class:`HttpSecurityBuilder` collects configurators (form login,
HTTP Basic, remember-me, logout, session management, URL authorization,
...), runs their initialize and configure phases, sorts the filters they
contribute by a fixed baseline order and returns an immutable
:class:`DefaultSecurityFilterChain`.
"""

from guardchain.builder import BuildState, HttpSecurityBuilder
from guardchain.constants import PROJECT_NAME, PROJECT_VERSION
from guardchain.ordering import DEFAULT_FILTER_ORDER, CustomFilterSlot, FilterOrderingTable
from guardchain.registry import SharedObjectRegistry
from guardchain.web.chain import DefaultSecurityFilterChain

__version__ = PROJECT_VERSION
__app_name__ = PROJECT_NAME

__all__ = [
    "BuildState",
    "CustomFilterSlot",
    "DEFAULT_FILTER_ORDER",
    "DefaultSecurityFilterChain",
    "FilterOrderingTable",
    "HttpSecurityBuilder",
    "PROJECT_NAME",
    "PROJECT_VERSION",
    "SharedObjectRegistry",
    "__app_name__",
    "__version__",
]
