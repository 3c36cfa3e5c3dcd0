from parkmate.db.repo.activation_codes_repo import ActivationCodesRepo
from parkmate.db.repo.automation_repo import AutomationRepo
from parkmate.db.repo.sms_dispatch_repo import SmsDispatchRepo
from parkmate.db.repo.subscriptions_repo import SubscriptionsRepo
from parkmate.db.repo.trials_repo import TrialsRepo
from parkmate.db.repo.vehicles_repo import VehiclesRepo
from parkmate.db.repo.villas_repo import VillasRepo

__all__ = [
    "ActivationCodesRepo",
    "AutomationRepo",
    "SmsDispatchRepo",
    "SubscriptionsRepo",
    "TrialsRepo",
    "VehiclesRepo",
    "VillasRepo",
]
