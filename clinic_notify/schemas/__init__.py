from .notification import (
	NotificationCreate,
	NotificationUpdate,
	NotificationStatusUpdate,
	NotificationResponse,
	NotificationCreateResponse,
	NotificationListResponse,
	CancelNotificationResponse,
)
from .statistics import (
	NotificationStatsResponse,
	NotificationReportResponse,
)

__all__ = [
	# Notification
	"NotificationCreate",
	"NotificationUpdate",
	"NotificationStatusUpdate",
	"NotificationResponse",
	"NotificationCreateResponse",
	"NotificationListResponse",
	"CancelNotificationResponse",
	# Statistics
	"NotificationStatsResponse",
	"NotificationReportResponse",
]
