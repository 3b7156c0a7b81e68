"""
SQLAlchemy-backed store.

Each call opens its own session from the injected factory and commits before
returning, so a call is atomic on its own and calls never share state. The
blocking ORM work runs in the threadpool, off the event loop.
"""
import functools
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from recycleconnect.core.utils import utcnow
from recycleconnect.models.listing import ListingStatus, WasteListing
from recycleconnect.models.transaction import Transaction, TransactionStatus
from recycleconnect.models.user import User, UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.listing import ListingRecord
from recycleconnect.schemas.transaction import TransactionRecord
from recycleconnect.schemas.user import UserRecord


def _threaded(func):
    """Expose a blocking store method as a coroutine run in the threadpool."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        return await run_in_threadpool(func, *args, **kwargs)
    return wrapper


def _to_record(schema, row):
    """Copy the column values of a row into a detached pydantic record."""
    if row is None:
        return None
    return schema.model_validate({c.name: getattr(row, c.name) for c in row.__table__.columns})


class SqlAlchemyStore(MarketplaceStore):
    """Store writing through SQLAlchemy ORM sessions."""

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    def _update_row(self, model, schema, row_id: int, fields: Dict[str, Any]):
        with self._session() as db:
            row = db.query(model).filter(model.id == row_id).first()
            if not row:
                return None
            for key, value in fields.items():
                if key == "id":
                    continue
                setattr(row, key, value)
            if hasattr(model, "updated_at"):
                row.updated_at = utcnow()
            db.commit()
            db.refresh(row)
            return _to_record(schema, row)

    # Users

    @_threaded
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._session() as db:
            return _to_record(UserRecord, db.query(User).filter(User.id == user_id).first())

    @_threaded
    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._session() as db:
            return _to_record(UserRecord, db.query(User).filter(User.email == email).first())

    @_threaded
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session() as db:
            return _to_record(UserRecord, db.query(User).filter(User.username == username).first())

    @_threaded
    def create_user(self, fields: Dict[str, Any]) -> UserRecord:
        with self._session() as db:
            user = User(**{**fields, "profile_complete": False})
            db.add(user)
            db.commit()
            db.refresh(user)
            return _to_record(UserRecord, user)

    @_threaded
    def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]:
        return self._update_row(User, UserRecord, user_id, fields)

    @_threaded
    def list_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        with self._session() as db:
            query = db.query(User)
            if role is not None:
                query = query.filter(User.role == role)
            return [_to_record(UserRecord, u) for u in query.order_by(User.id).all()]

    # Listings

    @_threaded
    def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        with self._session() as db:
            return _to_record(
                ListingRecord,
                db.query(WasteListing).filter(WasteListing.id == listing_id).first()
            )

    @_threaded
    def create_listing(self, fields: Dict[str, Any]) -> ListingRecord:
        with self._session() as db:
            listing = WasteListing(**{**fields, "status": ListingStatus.AVAILABLE})
            db.add(listing)
            db.commit()
            db.refresh(listing)
            return _to_record(ListingRecord, listing)

    @_threaded
    def update_listing(self, listing_id: int, fields: Dict[str, Any]) -> Optional[ListingRecord]:
        return self._update_row(WasteListing, ListingRecord, listing_id, fields)

    @_threaded
    def delete_listing(self, listing_id: int) -> bool:
        with self._session() as db:
            listing = db.query(WasteListing).filter(WasteListing.id == listing_id).first()
            if not listing:
                return False
            db.delete(listing)
            db.commit()
            return True

    @_threaded
    def list_listings(
        self,
        collector_id: Optional[int] = None,
        status: Optional[ListingStatus] = None
    ) -> List[ListingRecord]:
        with self._session() as db:
            query = db.query(WasteListing)
            if collector_id is not None:
                query = query.filter(WasteListing.collector_id == collector_id)
            if status is not None:
                query = query.filter(WasteListing.status == status)
            return [_to_record(ListingRecord, l) for l in query.order_by(WasteListing.id).all()]

    @_threaded
    def compare_and_set_listing_status(
        self,
        listing_id: int,
        expected: ListingStatus,
        new: ListingStatus
    ) -> Optional[ListingRecord]:
        with self._session() as db:
            # Single conditional UPDATE so concurrent writers cannot both win
            changed = db.query(WasteListing).filter(
                WasteListing.id == listing_id,
                WasteListing.status == expected
            ).update(
                {WasteListing.status: new, WasteListing.updated_at: utcnow()},
                synchronize_session=False
            )
            db.commit()
            if changed != 1:
                return None
            return _to_record(
                ListingRecord,
                db.query(WasteListing).filter(WasteListing.id == listing_id).first()
            )

    # Transactions

    @_threaded
    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        with self._session() as db:
            return _to_record(
                TransactionRecord,
                db.query(Transaction).filter(Transaction.id == transaction_id).first()
            )

    @_threaded
    def create_transaction(self, fields: Dict[str, Any]) -> TransactionRecord:
        with self._session() as db:
            transaction = Transaction(**{**fields, "status": TransactionStatus.PENDING})
            db.add(transaction)
            db.commit()
            db.refresh(transaction)
            return _to_record(TransactionRecord, transaction)

    @_threaded
    def update_transaction(
        self,
        transaction_id: int,
        fields: Dict[str, Any]
    ) -> Optional[TransactionRecord]:
        return self._update_row(Transaction, TransactionRecord, transaction_id, fields)

    @_threaded
    def list_transactions(
        self,
        listing_id: Optional[int] = None,
        status: Optional[TransactionStatus] = None
    ) -> List[TransactionRecord]:
        with self._session() as db:
            query = db.query(Transaction)
            if listing_id is not None:
                query = query.filter(Transaction.listing_id == listing_id)
            if status is not None:
                query = query.filter(Transaction.status == status)
            return [_to_record(TransactionRecord, t) for t in query.order_by(Transaction.id).all()]

    @_threaded
    def list_transactions_for_party(self, user_id: int, role: UserRole) -> List[TransactionRecord]:
        column = {
            UserRole.COLLECTOR: Transaction.collector_id,
            UserRole.TRANSPORTER: Transaction.transporter_id,
            UserRole.BUYER: Transaction.buyer_id,
        }[role]
        with self._session() as db:
            rows = db.query(Transaction).filter(column == user_id).order_by(Transaction.id).all()
            return [_to_record(TransactionRecord, t) for t in rows]
