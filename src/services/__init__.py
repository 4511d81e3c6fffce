# Business Logic Services
from src.services.device_service import (
    DeviceTokenStoreError,
    PairingCodeError,
    PairingCodeFormatError,
    exchange_pairing_code,
    issue_pairing_code,
    resolve_access_token,
)
from src.services.scheduler import (
    get_scheduler,
    start_scheduler,
    stop_scheduler,
    sweep_expired_device_tokens,
)
from src.services.telemetry_service import (
    InvalidVehicleError,
    TelemetryPersistenceError,
    record_disconnect,
    record_heartbeat,
    submit_telemetry_job,
)

__all__ = [
    "DeviceTokenStoreError",
    "PairingCodeError",
    "PairingCodeFormatError",
    "exchange_pairing_code",
    "issue_pairing_code",
    "resolve_access_token",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
    "sweep_expired_device_tokens",
    "InvalidVehicleError",
    "TelemetryPersistenceError",
    "record_disconnect",
    "record_heartbeat",
    "submit_telemetry_job",
]
