MAX_VEHICLES_PER_VILLA = 20
MAX_VILLA_ID_LENGTH = 50
MAX_SMS_MESSAGE_LENGTH = 160

VEHICLE_STATUS_PENDING = "pending"
VEHICLE_STATUS_SENT = "sent"
VEHICLE_STATUS_FAILED = "failed"
VEHICLE_STATUS_VERIFIED = "verified"
VEHICLE_STATUSES = frozenset(
    {
        VEHICLE_STATUS_PENDING,
        VEHICLE_STATUS_SENT,
        VEHICLE_STATUS_FAILED,
        VEHICLE_STATUS_VERIFIED,
    }
)
