class SubscriptionError(Exception):
    pass


class CodeGenerationRequestError(SubscriptionError):
    pass


class ActivationCodeInvalidFormatError(SubscriptionError):
    pass


class ActivationCodeNotFoundError(SubscriptionError):
    pass


class ActivationCodeExpiredError(SubscriptionError):
    pass


class ActivationCodeQuotaExceededError(SubscriptionError):
    def __init__(self, villa_count: int) -> None:
        super().__init__(villa_count)
        self.villa_count = villa_count


class ActivationCodeAlreadyUsedError(SubscriptionError):
    pass


class ActivationCodeUsedByOtherDeviceError(ActivationCodeAlreadyUsedError):
    pass


class TrialAlreadyUsedError(SubscriptionError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
