"""
In-memory store. Data lives as long as the store instance.
"""
import itertools
from typing import Any, Dict, List, Optional

from recycleconnect.core.utils import utcnow
from recycleconnect.models.listing import ListingStatus
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.listing import ListingRecord
from recycleconnect.schemas.transaction import TransactionRecord
from recycleconnect.schemas.user import UserRecord


class InMemoryStore(MarketplaceStore):
    """Dictionary-backed store with per-instance id counters."""

    def __init__(self):
        super().__init__()
        self._users: Dict[int, UserRecord] = {}
        self._listings: Dict[int, ListingRecord] = {}
        self._transactions: Dict[int, TransactionRecord] = {}
        self._user_ids = itertools.count(1)
        self._listing_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)

    @staticmethod
    def _copy(record):
        return record.model_copy() if record is not None else None

    @staticmethod
    def _merge(record, fields: Dict[str, Any], touch: bool = True):
        changes = dict(fields)
        changes.pop("id", None)
        if touch:
            changes["updated_at"] = utcnow()
        return record.model_copy(update=changes)

    # Users

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._copy(self._users.get(user_id))

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.email == email:
                return self._copy(user)
        return None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.username == username:
                return self._copy(user)
        return None

    async def create_user(self, fields: Dict[str, Any]) -> UserRecord:
        user = UserRecord.model_validate({
            **fields,
            "id": next(self._user_ids),
            "profile_complete": False,
            "created_at": utcnow(),
        })
        self._users[user.id] = user
        return self._copy(user)

    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = self._merge(user, fields, touch=False)
        self._users[user_id] = updated
        return self._copy(updated)

    async def list_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        return [
            self._copy(u) for u in self._users.values()
            if role is None or u.role == role
        ]

    # Listings

    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        return self._copy(self._listings.get(listing_id))

    async def create_listing(self, fields: Dict[str, Any]) -> ListingRecord:
        now = utcnow()
        listing = ListingRecord.model_validate({
            **fields,
            "id": next(self._listing_ids),
            "status": ListingStatus.AVAILABLE,
            "created_at": now,
            "updated_at": now,
        })
        self._listings[listing.id] = listing
        return self._copy(listing)

    async def update_listing(self, listing_id: int, fields: Dict[str, Any]) -> Optional[ListingRecord]:
        listing = self._listings.get(listing_id)
        if listing is None:
            return None
        updated = self._merge(listing, fields)
        self._listings[listing_id] = updated
        return self._copy(updated)

    async def delete_listing(self, listing_id: int) -> bool:
        return self._listings.pop(listing_id, None) is not None

    async def list_listings(
        self,
        collector_id: Optional[int] = None,
        status: Optional[ListingStatus] = None
    ) -> List[ListingRecord]:
        return [
            self._copy(l) for l in self._listings.values()
            if (collector_id is None or l.collector_id == collector_id)
            and (status is None or l.status == status)
        ]

    async def compare_and_set_listing_status(
        self,
        listing_id: int,
        expected: ListingStatus,
        new: ListingStatus
    ) -> Optional[ListingRecord]:
        listing = self._listings.get(listing_id)
        if listing is None or listing.status != expected:
            return None
        updated = self._merge(listing, {"status": new})
        self._listings[listing_id] = updated
        return self._copy(updated)

    # Transactions

    async def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        return self._copy(self._transactions.get(transaction_id))

    async def create_transaction(self, fields: Dict[str, Any]) -> TransactionRecord:
        now = utcnow()
        transaction = TransactionRecord.model_validate({
            **fields,
            "id": next(self._transaction_ids),
            "status": TransactionStatus.PENDING,
            "created_at": now,
            "updated_at": now,
        })
        self._transactions[transaction.id] = transaction
        return self._copy(transaction)

    async def update_transaction(
        self,
        transaction_id: int,
        fields: Dict[str, Any]
    ) -> Optional[TransactionRecord]:
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            return None
        updated = self._merge(transaction, fields)
        self._transactions[transaction_id] = updated
        return self._copy(updated)

    async def list_transactions(
        self,
        listing_id: Optional[int] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[TransactionRecord]:
        return [
            self._copy(t) for t in self._transactions.values()
            if (listing_id is None or t.listing_id == listing_id)
            and (status is None or t.status == status)
        ]
