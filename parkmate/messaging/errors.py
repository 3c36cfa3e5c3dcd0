class MessagingError(Exception):
    pass


class SubscriptionRequiredError(MessagingError):
    pass


class ScheduleValidationError(MessagingError):
    pass
