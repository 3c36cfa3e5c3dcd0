from parkmate.subscriptions.codes import ActivationCodeService
from parkmate.subscriptions.service import SubscriptionService

__all__ = ["ActivationCodeService", "SubscriptionService"]
