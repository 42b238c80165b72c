from cart.pricing.fees import (
    FeeBreakdown,
    FlatFeePolicy,
    PercentageFeePolicy,
    PlatformFeePolicy,
    ServiceFeePolicy,
)
from cart.pricing.resolver import PricingResolver

__all__ = [
    "FeeBreakdown",
    "FlatFeePolicy",
    "PercentageFeePolicy",
    "PlatformFeePolicy",
    "PricingResolver",
    "ServiceFeePolicy",
]
