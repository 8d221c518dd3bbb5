"""
Platform settings edited from the admin console.

Stored rows override DEFAULT_SETTINGS; a key never written reads as its
default. Maintenance mode is switched through set_maintenance only, so the
admin alert and the audit entry always go with it.
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from app.db.models.system_setting import SystemSetting
from app.db.models.user import User
from app.services.audit_service import record_audit
from app.services.notification_service import create_admin_notification

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "maintenance_mode": False,
    "maintenance_message": None,
    "registrations_open": True,
    "email_notifications": True,
}

# Settings editable through update_setting
SWITCHES = ("registrations_open", "email_notifications")


class SettingsError(ValueError):
    pass


def get_settings(db: Session) -> Dict[str, Any]:
    settings = dict(DEFAULT_SETTINGS)
    for row in db.query(SystemSetting).filter(SystemSetting.key.in_(list(DEFAULT_SETTINGS))).all():
        settings[row.key] = row.value
    return settings


def get_setting(db: Session, key: str) -> Any:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row is None:
        return DEFAULT_SETTINGS.get(key)
    return row.value


def is_enabled(db: Session, key: str) -> bool:
    return bool(get_setting(db, key))


def _store(db: Session, key: str, value: Any, admin_id: int) -> None:
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row is None:
        row = SystemSetting(key=key)
        db.add(row)
    row.value = value
    row.updated_by = admin_id


def update_setting(db: Session, admin: User, key: str, value: Any) -> Dict[str, Any]:
    """
    Raises:
        SettingsError: Unknown key, or a non-boolean value for a switch
    """
    if key not in SWITCHES:
        raise SettingsError(f"Unknown setting: {key}")
    if not isinstance(value, bool):
        raise SettingsError(f"Setting {key} must be true or false")

    _store(db, key, value, admin.id)
    record_audit(db, admin.id, "UPDATE_SETTING", "SYSTEM", key, {"value": value}, commit=False)
    db.commit()

    logger.info(f"Setting updated: key={key}, value={value}, admin_id={admin.id}")
    return get_settings(db)


def set_maintenance(
    db: Session,
    admin: User,
    enabled: bool,
    message: Optional[str] = None,
    schedule: Optional[str] = None,
) -> Dict[str, Any]:
    """Switch maintenance mode and warn the other admins."""
    maintenance_message = {"message": message, "schedule": schedule} if enabled else None
    _store(db, "maintenance_mode", enabled, admin.id)
    _store(db, "maintenance_message", maintenance_message, admin.id)

    action = "ENABLE_MAINTENANCE" if enabled else "DISABLE_MAINTENANCE"
    record_audit(db, admin.id, action, "SYSTEM", None, maintenance_message, commit=False)
    create_admin_notification(
        db,
        type="SYSTEM",
        title="Maintenance mode enabled" if enabled else "Maintenance mode disabled",
        message=message or ("The platform is in maintenance" if enabled else "The platform is back online"),
        severity="WARNING" if enabled else "INFO",
        details={"schedule": schedule} if schedule else None,
        commit=False,
    )
    db.commit()

    logger.warning(f"Maintenance mode {'enabled' if enabled else 'disabled'}: admin_id={admin.id}")
    return get_settings(db)
