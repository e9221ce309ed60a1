"""Module Protocols.

Pages cached by the Host Shell stay alive across profile changes.  A
page that displays profile data implements ``ProfileAware`` and the
shell pushes every new profile snapshot into it, so an edit or an
approval decision shows up without rebuilding the page.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from portal.models.enums import Route
from portal.models.profile import Profile


@runtime_checkable
class ProfileAware(Protocol):
    """Contract for pages that re-render on profile changes.

    Structural (PEP 544) so views need the right shape, not a base
    class.
    """

    def on_profile_changed(self, profile: Profile) -> None:
        """Update the page for *profile*.  Called on the UI thread."""
        ...


@runtime_checkable
class ShellContext(Protocol):
    """What a page factory may ask of the Host Shell."""

    @property
    def current_profile(self) -> Optional[Profile]:
        """Latest profile snapshot of the signed-in user."""
        ...

    def navigate(self, route: Route) -> None:
        """Go to *route*; the route's guard decides what is shown."""
        ...
