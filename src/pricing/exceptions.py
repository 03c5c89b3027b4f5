class PricingError(Exception):
    pass


class InvalidCurveInputError(PricingError, ValueError):
    pass


class InvalidSupplyInputError(PricingError, ValueError):
    pass


class SupplyOverflowError(PricingError):
    pass
