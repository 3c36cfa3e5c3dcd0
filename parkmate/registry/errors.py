class RegistryError(Exception):
    pass


class RegistryValidationError(RegistryError):
    pass


class VillaNotFoundError(RegistryError):
    pass


class VillaAlreadyExistsError(RegistryError):
    pass


class VillaLimitReachedError(RegistryError):
    def __init__(self, limit: int) -> None:
        super().__init__(limit)
        self.limit = limit


class VehicleNotFoundError(RegistryError):
    pass


class VehicleLimitReachedError(RegistryError):
    def __init__(self, limit: int) -> None:
        super().__init__(limit)
        self.limit = limit
