"""Cross-platform system notifications for SnapSync.

This module provides:
- Native OS notifications (Windows toast, macOS notification center, Linux notify-send)
- Helpers for the sync outcomes users need to see
- log_notification: a notifier that only logs (headless use, tests)
"""

from __future__ import annotations

import logging
import platform
import subprocess
from dataclasses import dataclass
from enum import Enum, auto

logger = logging.getLogger(__name__)

APP_NAME = "SnapSync"


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class Notification:
    """Represents a notification to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


def _notify_windows(notification: Notification) -> bool:
    """Send notification on Windows using a PowerShell toast."""
    try:
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null

        $template = @"
        <toast>
            <visual>
                <binding template="ToastText02">
                    <text id="1">{notification.title}</text>
                    <text id="2">{notification.message}</text>
                </binding>
            </visual>
        </toast>
"@

        $xml = New-Object Windows.Data.Xml.Dom.XmlDocument
        $xml.LoadXml($template)
        $toast = New-Object Windows.UI.Notifications.ToastNotification $xml
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''

        subprocess.run(
            ["powershell", "-ExecutionPolicy", "Bypass", "-Command", ps_script],
            capture_output=True,
            check=False,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
        return True
    except Exception as e:
        logger.debug(f"Windows notification failed: {e}")
        return False


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript."""
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}"'
        subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            check=True,
        )
        return True
    except Exception as e:
        logger.debug(f"macOS notification failed: {e}")
        return False


def _notify_linux(notification: Notification) -> bool:
    """Send notification on Linux using notify-send."""
    urgency = "critical" if notification.type == NotificationType.ERROR else "normal"
    try:
        subprocess.run(
            [
                "notify-send",
                "--urgency", urgency,
                "--app-name", APP_NAME,
                notification.title,
                notification.message,
            ],
            capture_output=True,
            check=True,
        )
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except Exception as e:
        logger.debug(f"Linux notification failed: {e}")
        return False


def log_notification(notification: Notification) -> bool:
    """Record a notification in the log only."""
    level = {
        NotificationType.INFO: logging.INFO,
        NotificationType.WARNING: logging.WARNING,
        NotificationType.ERROR: logging.ERROR,
    }[notification.type]
    logger.log(level, f"{notification.title}: {notification.message}")
    return True


def send_notification(notification: Notification) -> bool:
    """Send a system notification.

    Falls back to the log when no native notifier is available.

    Returns:
        True if a native notification was sent.
    """
    system = platform.system()

    if system == "Windows":
        sent = _notify_windows(notification)
    elif system == "Darwin":
        sent = _notify_macos(notification)
    elif system == "Linux":
        sent = _notify_linux(notification)
    else:
        logger.warning(f"Notifications not supported on {system}")
        sent = False

    if not sent:
        log_notification(notification)
    return sent


def bootstrap_notification() -> Notification:
    return Notification(
        title=f"{APP_NAME} - First Sync",
        message="Remote copy was empty. Local state is now the shared baseline.",
        type=NotificationType.INFO,
    )


def sync_complete_notification(merged: bool, repaired: bool) -> Notification:
    if repaired:
        return Notification(
            title=f"{APP_NAME} - Remote Repaired",
            message="Remote copy was unreadable and has been replaced with local state.",
            type=NotificationType.WARNING,
        )
    detail = "Remote changes merged." if merged else "Local state uploaded."
    return Notification(title=f"{APP_NAME} - Sync Complete", message=detail)


def error_notification(message: str) -> Notification:
    return Notification(
        title=f"{APP_NAME} - Sync Failed",
        message=message,
        type=NotificationType.ERROR,
    )
