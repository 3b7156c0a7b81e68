"""
Repository interface over the three marketplace collections.

Both engines assign ids, stamp timestamps and force the initial status on
create. Updates merge the supplied fields over the stored record, refresh
``updated_at`` and return ``None`` when the id is absent. Records handed out
are copies; mutating them never touches stored state.
"""
import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, List, Optional

from recycleconnect.models.listing import ListingStatus
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole
from recycleconnect.schemas.listing import ListingRecord
from recycleconnect.schemas.transaction import TransactionRecord
from recycleconnect.schemas.user import UserRecord

# Transaction attribute holding the id of the party with each role
PARTY_FIELDS = {
    UserRole.COLLECTOR: "collector_id",
    UserRole.TRANSPORTER: "transporter_id",
    UserRole.BUYER: "buyer_id",
}


class MarketplaceStore(ABC):
    """Async CRUD contract shared by the in-memory and SQL engines."""

    def __init__(self):
        self._listing_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def listing_lock(self, listing_id: int) -> asyncio.Lock:
        """Lock serialising status changes of one listing within this store."""
        return self._listing_locks[listing_id]

    def discard_listing_lock(self, listing_id: int) -> None:
        """Forget the lock of a deleted listing."""
        self._listing_locks.pop(listing_id, None)

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def create_user(self, fields: Dict[str, Any]) -> UserRecord:
        ...

    @abstractmethod
    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def list_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        ...

    # Listings

    @abstractmethod
    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        ...

    @abstractmethod
    async def create_listing(self, fields: Dict[str, Any]) -> ListingRecord:
        ...

    @abstractmethod
    async def update_listing(self, listing_id: int, fields: Dict[str, Any]) -> Optional[ListingRecord]:
        ...

    @abstractmethod
    async def delete_listing(self, listing_id: int) -> bool:
        ...

    @abstractmethod
    async def list_listings(
        self,
        collector_id: Optional[int] = None,
        status: Optional[ListingStatus] = None
    ) -> List[ListingRecord]:
        ...

    @abstractmethod
    async def compare_and_set_listing_status(
        self,
        listing_id: int,
        expected: ListingStatus,
        new: ListingStatus
    ) -> Optional[ListingRecord]:
        """
        Set the listing status only if it currently equals ``expected``.
        Returns the updated listing, or None if absent or the status differs.
        """

    # Transactions

    @abstractmethod
    async def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        ...

    @abstractmethod
    async def create_transaction(self, fields: Dict[str, Any]) -> TransactionRecord:
        ...

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: int,
        fields: Dict[str, Any]
    ) -> Optional[TransactionRecord]:
        ...

    @abstractmethod
    async def list_transactions(
        self,
        listing_id: Optional[int] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[TransactionRecord]:
        ...

    async def list_transactions_for_party(self, user_id: int, role: UserRole) -> List[TransactionRecord]:
        """Transactions where the user appears in the party field of their role."""
        field = PARTY_FIELDS[role]
        transactions = await self.list_transactions()
        return [t for t in transactions if getattr(t, field) == user_id]
