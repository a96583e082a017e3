from .found_item import FoundItem
from .lost_item import LostItem
from .match_notification import MatchNotification
from .claim_record import ClaimRecord

__all__ = ["FoundItem", "LostItem", "MatchNotification", "ClaimRecord"]
