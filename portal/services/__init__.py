"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
injected ``SessionManager`` for the signed-in identity.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the application layer (shell / views) can
consume without knowing the internal dependency graph.  The inactivity
watchdogs are not created here: they schedule on the Tk root and are
owned by the shell.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from portal.auth import SessionManager
from portal.config import AppConfig
from portal.database import DatabaseManager
from portal.logger import get_logger
from portal.policy import AccessPolicy
from portal.repositories.activity_repository import ActivityRepository
from portal.repositories.notification_repository import NotificationRepository
from portal.repositories.profile_repository import ProfileRepository
from portal.repositories.storage_repository import StorageRepository
from portal.services.activity_service import ActivityService
from portal.services.auth_service import AuthService
from portal.services.email_service import EmailService
from portal.services.notification_service import NotificationService
from portal.services.otp_service import OtpService
from portal.services.profile_service import ProfileService
from portal.services.profile_watcher import ProfileWatcher
from portal.services.users import UserService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    auth_service: AuthService
    otp_service: OtpService
    email_service: EmailService
    activity_service: ActivityService
    notification_service: NotificationService
    profile_service: ProfileService
    profile_watcher: ProfileWatcher
    user_service: UserService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    session: SessionManager,
    policy: Optional[AccessPolicy] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup and passes the
    returned dict to the shell.

    Args:
        db: Initialised DatabaseManager.
        config: Application configuration (timeouts, OTP limits, mail).
        session: Shared session holder (also read by the guards).
        policy: Bootstrap-account policy; defaults to the fixed address.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")
    policy = policy or AccessPolicy()

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    profile_repo = ProfileRepository(db=db, logger=logger)
    activity_repo = ActivityRepository(db=db, logger=logger)
    notification_repo = NotificationRepository(db=db, logger=logger)
    storage_repo = StorageRepository(
        db=db, logger=logger, bucket=config.STORAGE_BUCKET,
    )

    # ------------------------------------------------------------------
    # 2. Leaf services (no service dependencies)
    # ------------------------------------------------------------------
    email_service = EmailService(logger=logger, config=config)
    otp_service = OtpService(
        logger=logger,
        ttl_seconds=config.OTP_TTL_SECONDS,
        max_attempts=config.OTP_MAX_ATTEMPTS,
    )
    activity_service = ActivityService(activity_repo=activity_repo, logger=logger)
    profile_watcher = ProfileWatcher(
        profile_repo=profile_repo,
        logger=logger,
        interval_s=config.PROFILE_REFRESH_INTERVAL_S,
    )
    user_service = UserService(
        repo=profile_repo,
        session=session,
        logger=logger,
        policy=policy,
    )

    # ------------------------------------------------------------------
    # 3. Orchestration services (depend on other services)
    # ------------------------------------------------------------------
    notification_service = NotificationService(
        notification_repo=notification_repo,
        email_service=email_service,
        logger=logger,
    )
    auth_service = AuthService(
        db=db,
        session=session,
        profile_repo=profile_repo,
        otp_service=otp_service,
        otp_channel=email_service,
        logger=logger,
        policy=policy,
        activity_service=activity_service,
        notification_service=notification_service,
    )
    profile_service = ProfileService(
        profile_repo=profile_repo,
        storage_repo=storage_repo,
        session=session,
        db=db,
        activity_service=activity_service,
        logger=logger,
        watcher=profile_watcher,
    )

    return ServiceContainer(
        auth_service=auth_service,
        otp_service=otp_service,
        email_service=email_service,
        activity_service=activity_service,
        notification_service=notification_service,
        profile_service=profile_service,
        profile_watcher=profile_watcher,
        user_service=user_service,
    )
