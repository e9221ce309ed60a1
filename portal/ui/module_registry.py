"""Module Registry.

Central registry for the protected pages of both portal areas.  Each
module is bound to a ``Route``; the Host Shell asks the registry which
modules belong to an area to populate the sidebar, and resolves the
route a guard allowed into the frame to show.

Adding a new page = one ``register()`` call + one view class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from portal.logger import StructuredLogger
from portal.models.enums import Route, UserRole

if TYPE_CHECKING:
    import customtkinter as ctk

    from portal.ui.module_frame import ShellContext

ModuleFactory = Callable[["ctk.CTkFrame", "ShellContext"], "ctk.CTkFrame"]


class ModuleEntry:
    """Metadata for a single registered module.

    Attributes
    ----------
    route:
        Route this module renders; also its unique identifier.
    display_name:
        Human-readable name shown in the sidebar.
    icon:
        Unicode character used as the sidebar icon.
    factory:
        Callable ``(parent, shell) -> CTkFrame`` building the module's
        root frame.  Called lazily on first activation.
    area:
        Portal area (``native`` or ``admin``) whose sidebar lists it.
    """

    __slots__ = (
        "route",
        "display_name",
        "icon",
        "factory",
        "area",
    )

    def __init__(
        self,
        route: Route,
        display_name: str,
        icon: str,
        factory: ModuleFactory,
        area: UserRole,
    ) -> None:
        self.route = route
        self.display_name = display_name
        self.icon = icon
        self.factory = factory
        self.area = area


class ModuleRegistry:
    """Manages the collection of registered modules.

    The application entry-point creates a ``ModuleRegistry``, registers
    all modules, and passes it to the ``AppShell``.

    Parameters
    ----------
    logger:
        Structured logger for registration events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._entries: dict[Route, ModuleEntry] = {}
        self._logger = logger
        self._default_routes: dict[UserRole, Route] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(
        self,
        route: Route,
        display_name: str,
        icon: str,
        factory: ModuleFactory,
        area: UserRole,
        *,
        default: bool = False,
    ) -> None:
        """Register a module with the host shell.

        Parameters
        ----------
        route:
            Route the module renders.
        display_name:
            Label shown in the sidebar.
        icon:
            Unicode icon character for the sidebar entry.
        factory:
            Callable ``(parent, shell) -> CTkFrame`` invoked lazily.
        area:
            Area whose sidebar lists the module.
        default:
            If ``True``, the module is the area's landing page.  The
            first module registered for an area is the fallback.
        """
        if route in self._entries:
            self._logger.warning(
                "Module '%s' already registered; overwriting.", route,
            )
        self._entries[route] = ModuleEntry(
            route=route,
            display_name=display_name,
            icon=icon,
            factory=factory,
            area=area,
        )
        if default or area not in self._default_routes:
            self._default_routes[area] = route
        self._logger.info("Module registered: %s (%s)", route, display_name)

    def get_modules_for_area(self, area: UserRole) -> list[ModuleEntry]:
        """Return modules listed in *area*, preserving registration order."""
        return [
            entry
            for entry in self._entries.values()
            if entry.area == area
        ]

    def get_module(self, route: Route) -> ModuleEntry:
        """Return the module entry for *route*.

        Raises
        ------
        KeyError
            If no module is registered for *route*.
        """
        if route not in self._entries:
            raise KeyError(f"Module '{route}' is not registered.")
        return self._entries[route]

    def default_route(self, area: UserRole) -> Optional[Route]:
        """The landing route of *area*, or ``None`` if it has no modules."""
        return self._default_routes.get(area)
