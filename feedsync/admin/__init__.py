"""Administrative maintenance of feed tables."""

from feedsync.admin.maintenance import MaintenanceHandlers

__all__ = ["MaintenanceHandlers"]
