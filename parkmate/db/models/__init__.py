from parkmate.db.models.activation_codes import ActivationCode
from parkmate.db.models.automation_schedules import AutomationSchedule
from parkmate.db.models.code_redemptions import CodeRedemption
from parkmate.db.models.sms_dispatches import SmsDispatch
from parkmate.db.models.subscriptions import Subscription
from parkmate.db.models.trial_devices import TrialDevice
from parkmate.db.models.vehicles import Vehicle
from parkmate.db.models.villas import Villa

__all__ = [
    "ActivationCode",
    "AutomationSchedule",
    "CodeRedemption",
    "SmsDispatch",
    "Subscription",
    "TrialDevice",
    "Vehicle",
    "Villa",
]
