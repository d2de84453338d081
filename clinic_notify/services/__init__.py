"""Services package for the notification engine."""

from .balance_ledger import BalanceLedger, balance_ledger
from .device_directory import DeviceDirectory, SQLDeviceDirectory, device_directory
from .notification_service import NotificationService, notification_service
from .stats_service import NotificationStatsService, stats_service

__all__ = [
    "BalanceLedger",
    "balance_ledger",
    "DeviceDirectory",
    "SQLDeviceDirectory",
    "device_directory",
    "NotificationService",
    "notification_service",
    "NotificationStatsService",
    "stats_service",
]
