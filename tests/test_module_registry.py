"""Tests for the shell's module registry."""

from unittest.mock import MagicMock

import pytest

from portal.models.enums import Route, UserRole
from portal.ui.module_registry import ModuleRegistry


@pytest.fixture
def registry(logger):
    registry = ModuleRegistry(logger)
    registry.register(Route.NATIVE_DASHBOARD, "Dashboard", "⌂", MagicMock(), UserRole.NATIVE)
    registry.register(Route.NATIVE_PROFILE, "My Profile", "☺", MagicMock(), UserRole.NATIVE)
    registry.register(Route.ADMIN_USERS, "Registrations", "☰", MagicMock(), UserRole.ADMIN)
    registry.register(
        Route.ADMIN_DASHBOARD, "Overview", "⌂", MagicMock(), UserRole.ADMIN, default=True,
    )
    return registry


class TestModuleRegistry:
    """Tests for ``ModuleRegistry``."""

    def test_modules_grouped_by_area(self, registry):
        """Each area lists its own modules in registration order."""
        native = [entry.route for entry in registry.get_modules_for_area(UserRole.NATIVE)]
        admin = [entry.route for entry in registry.get_modules_for_area(UserRole.ADMIN)]

        assert native == [Route.NATIVE_DASHBOARD, Route.NATIVE_PROFILE]
        assert admin == [Route.ADMIN_USERS, Route.ADMIN_DASHBOARD]

    def test_first_module_is_fallback_default(self, registry):
        """Without an explicit default the first registration lands."""
        assert registry.default_route(UserRole.NATIVE) == Route.NATIVE_DASHBOARD

    def test_explicit_default_wins(self, registry):
        """``default=True`` overrides registration order."""
        assert registry.default_route(UserRole.ADMIN) == Route.ADMIN_DASHBOARD

    def test_unknown_route_raises(self, logger):
        """Looking up an unregistered route is an error."""
        with pytest.raises(KeyError):
            ModuleRegistry(logger).get_module(Route.ADMIN_USERS)

    def test_empty_area_has_no_default(self, logger):
        assert ModuleRegistry(logger).default_route(UserRole.NATIVE) is None

    def test_reregistration_overwrites_with_warning(self, registry, logger):
        """Registering a route twice keeps the latest factory."""
        factory = MagicMock()

        registry.register(Route.NATIVE_PROFILE, "Profile", "☺", factory, UserRole.NATIVE)

        assert registry.get_module(Route.NATIVE_PROFILE).factory is factory
        logger.warning.assert_called_once()
