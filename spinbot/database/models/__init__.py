from .account import DAILY_SPINS, Account, RewardEntry

__all__ = [
    "DAILY_SPINS",
    "Account",
    "RewardEntry",
]
