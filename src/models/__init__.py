# Database Models
from src.models.base import Base, TimestampMixin
from src.models.device_token import DeviceToken
from src.models.job import GameType, Job, JobStatus
from src.models.security_audit_log import SecurityAuditLog
from src.models.user import User
from src.models.vehicle import Trailer, Truck

__all__ = [
    "Base",
    "DeviceToken",
    "GameType",
    "Job",
    "JobStatus",
    "SecurityAuditLog",
    "TimestampMixin",
    "Trailer",
    "Truck",
    "User",
]
