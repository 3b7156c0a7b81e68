"""
Tests for transaction endpoints and the listing status they drive.
"""
import asyncio
import pytest
from fastapi.testclient import TestClient
from conftest import create_listing, login, register
from recycleconnect.core.config import Settings
from recycleconnect.main import create_app
from recycleconnect.models.listing import ListingStatus, MaterialType, ReservationPolicy
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.memory import InMemoryStore
from recycleconnect.schemas.transaction import TransactionCreate, TransactionUpdate
from recycleconnect.services import transaction_service


def open_transaction(client, listing_id, **extra):
    return client.post("/api/transactions", json={"listingId": listing_id, **extra})


def listing_status(collector, listing_id):
    listings = collector.get("/api/listings/collector").json()
    return next(l["status"] for l in listings if l["id"] == listing_id)


def test_pickup_to_completion_scenario(collector, transporter):
    """Collector lists, transporter picks up and completes; listing closes."""
    listing = create_listing(collector, materialType="paper", quantity=10, unit="kg", price=2).json()
    assert listing["status"] == "available"

    response = open_transaction(transporter, listing["id"])
    assert response.status_code == 201
    transaction = response.json()
    assert transaction["status"] == "pending"
    assert transaction["totalAmount"] == 20
    assert transaction["listingId"] == listing["id"]
    assert transaction["collectorId"] == collector.user["id"]
    assert transaction["transporterId"] == transporter.user["id"]
    assert transaction["buyerId"] is None
    assert listing_status(collector, listing["id"]) == "pending_pickup"

    response = transporter.put(f"/api/transactions/{transaction['id']}", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert listing_status(collector, listing["id"]) == "completed"

    response = open_transaction(transporter, listing["id"])
    assert response.status_code == 400
    assert response.json()["error"] == "This listing is not available"


def test_buyer_purchase_leaves_listing_available(collector, buyer):
    listing = create_listing(collector, quantity=3, price=4.5).json()
    response = open_transaction(buyer, listing["id"])
    assert response.status_code == 201
    transaction = response.json()
    assert transaction["buyerId"] == buyer.user["id"]
    assert transaction["transporterId"] is None
    assert transaction["totalAmount"] == 13.5
    assert listing_status(collector, listing["id"]) == "available"


def test_buyer_completion_completes_listing(collector, buyer):
    listing = create_listing(collector).json()
    transaction = open_transaction(buyer, listing["id"]).json()
    response = buyer.put(f"/api/transactions/{transaction['id']}", json={"status": "completed"})
    assert response.status_code == 200
    assert listing_status(collector, listing["id"]) == "completed"


def test_single_active_transaction_per_listing(collector, buyer, transporter):
    listing = create_listing(collector).json()
    assert open_transaction(buyer, listing["id"]).status_code == 201
    response = open_transaction(transporter, listing["id"])
    assert response.status_code == 400
    assert response.json()["error"] == "This listing already has an active transaction"


def test_cancel_reopens_listing(collector, transporter, login_as):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()

    response = collector.put(f"/api/transactions/{transaction['id']}", json={"status": "cancelled"})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert listing_status(collector, listing["id"]) == "available"

    # Re-opened for someone else
    other = login_as("transporter")
    assert open_transaction(other, listing["id"]).status_code == 201


def test_collector_cannot_open_transaction(collector):
    listing = create_listing(collector).json()
    response = open_transaction(collector, listing["id"])
    assert response.status_code == 403
    assert listing_status(collector, listing["id"]) == "available"


def test_open_transaction_unknown_listing(buyer):
    response = open_transaction(buyer, 9999)
    assert response.status_code == 404


def test_open_transaction_requires_session(client):
    assert open_transaction(client, 1).status_code == 401


def test_open_transaction_validation(buyer):
    response = buyer.post("/api/transactions", json={})
    assert response.status_code == 400


def test_open_transaction_ignores_client_party_and_amount(collector, transporter, buyer):
    listing = create_listing(collector).json()
    response = open_transaction(
        transporter,
        listing["id"],
        buyerId=buyer.user["id"],
        totalAmount=1,
        status="completed",
        pickupDate="2026-11-02T09:00:00Z",
    )
    assert response.status_code == 201
    data = response.json()
    assert data["buyerId"] is None
    assert data["totalAmount"] == 20
    assert data["status"] == "pending"
    assert data["pickupDate"].startswith("2026-11-02T09:00:00")


def test_list_transactions_scoped_by_role(collector, transporter, buyer, login_as):
    first = create_listing(collector).json()
    second = create_listing(collector).json()
    picked = open_transaction(transporter, first["id"]).json()
    bought = open_transaction(buyer, second["id"]).json()

    assert [t["id"] for t in collector.get("/api/transactions").json()] == [picked["id"], bought["id"]]
    assert [t["id"] for t in transporter.get("/api/transactions").json()] == [picked["id"]]
    assert [t["id"] for t in buyer.get("/api/transactions").json()] == [bought["id"]]
    assert login_as("buyer").get("/api/transactions").json() == []


def test_update_transaction_not_party(collector, transporter, login_as):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()

    for outsider in (login_as("transporter"), login_as("buyer"), login_as("collector")):
        response = outsider.put(f"/api/transactions/{transaction['id']}", json={"status": "cancelled"})
        assert response.status_code == 403
        assert response.json()["error"] == "You are not involved in this transaction"
    assert listing_status(collector, listing["id"]) == "pending_pickup"


def test_update_transaction_not_found(buyer):
    response = buyer.put("/api/transactions/77", json={"status": "completed"})
    assert response.status_code == 404


def test_update_transaction_dates_only(collector, transporter):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    response = transporter.put(
        f"/api/transactions/{transaction['id']}",
        json={"pickupDate": "2026-11-03T08:30:00Z"}
    )
    assert response.status_code == 200
    assert response.json()["pickupDate"].startswith("2026-11-03T08:30:00")
    assert response.json()["status"] == "pending"
    assert listing_status(collector, listing["id"]) == "pending_pickup"


def test_update_transaction_invalid_status(collector, transporter):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    response = transporter.put(f"/api/transactions/{transaction['id']}", json={"status": "shipped"})
    assert response.status_code == 400


@pytest.mark.parametrize("final", ["completed", "cancelled"])
def test_terminal_transaction_is_frozen(collector, transporter, final):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    transporter.put(f"/api/transactions/{transaction['id']}", json={"status": final})
    status_after = listing_status(collector, listing["id"])

    for change in ({"status": "pending"}, {"status": "completed"}, {"status": "cancelled"}):
        if change["status"] == final:
            continue
        response = transporter.put(f"/api/transactions/{transaction['id']}", json=change)
        assert response.status_code == 400
    response = transporter.put(
        f"/api/transactions/{transaction['id']}",
        json={"deliveryDate": "2026-11-04T10:00:00Z"}
    )
    assert response.status_code == 400
    assert listing_status(collector, listing["id"]) == status_after


def test_advance_shipment(collector, transporter):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    url = f"/api/transactions/{transaction['id']}/advance"

    response = transporter.post(url)
    assert response.status_code == 200
    assert response.json()["pickupDate"] is not None
    assert listing_status(collector, listing["id"]) == "in_transit"

    response = transporter.post(url)
    assert response.status_code == 200
    assert response.json()["deliveryDate"] is not None
    assert listing_status(collector, listing["id"]) == "delivered"

    # No step after delivery
    assert transporter.post(url).status_code == 400

    transporter.put(f"/api/transactions/{transaction['id']}", json={"status": "completed"})
    assert listing_status(collector, listing["id"]) == "completed"


def test_cancel_in_transit_reopens_listing(collector, transporter):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    transporter.post(f"/api/transactions/{transaction['id']}/advance")
    transporter.put(f"/api/transactions/{transaction['id']}", json={"status": "cancelled"})
    assert listing_status(collector, listing["id"]) == "available"


def test_advance_shipment_only_by_transporter(collector, transporter, buyer):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    assert collector.post(f"/api/transactions/{transaction['id']}/advance").status_code == 403
    assert buyer.post(f"/api/transactions/{transaction['id']}/advance").status_code == 403


def test_advance_shipment_requires_pending_transaction(collector, transporter):
    listing = create_listing(collector).json()
    transaction = open_transaction(transporter, listing["id"]).json()
    transporter.put(f"/api/transactions/{transaction['id']}", json={"status": "completed"})
    assert transporter.post(f"/api/transactions/{transaction['id']}/advance").status_code == 400


def _build_app(**overrides):
    app_settings = Settings(LOG_LEVEL="WARNING", STORAGE_BACKEND="memory", **overrides)
    return create_app(app_settings, store=InMemoryStore())


def _logged_in(app, role):
    client = TestClient(app)
    user = register(client, role).json()
    login(client, user["email"])
    client.user = user
    return client


def test_all_parties_reservation_policy():
    app = _build_app(LISTING_RESERVATION_POLICY="all_parties")
    collector, buyer = _logged_in(app, "collector"), _logged_in(app, "buyer")
    listing = create_listing(collector).json()

    assert open_transaction(buyer, listing["id"]).status_code == 201
    assert listing_status(collector, listing["id"]) == "pending_pickup"


def test_multiple_active_transactions_when_allowed():
    app = _build_app(SINGLE_ACTIVE_TRANSACTION=False)
    collector = _logged_in(app, "collector")
    first, second = _logged_in(app, "buyer"), _logged_in(app, "buyer")
    listing = create_listing(collector).json()

    one = open_transaction(first, listing["id"]).json()
    two = open_transaction(second, listing["id"]).json()
    assert one["id"] != two["id"]

    first.put(f"/api/transactions/{one['id']}", json={"status": "completed"})
    assert listing_status(collector, listing["id"]) == "completed"

    # Listing already closed: the other purchase cannot re-open it
    response = second.put(f"/api/transactions/{two['id']}", json={"status": "cancelled"})
    assert response.status_code == 400
    assert listing_status(collector, listing["id"]) == "completed"


def test_open_transaction_rejects_overflowing_total(collector, transporter, store):
    listing = create_listing(collector).json()
    # Written straight to the store; the listing endpoints refuse these values
    asyncio.run(store.update_listing(listing["id"], {"quantity": 1e200, "price": 1e200}))

    response = open_transaction(transporter, listing["id"])
    assert response.status_code == 400
    assert response.json()["error"] == "Quantity times price is too large"
    assert listing_status(collector, listing["id"]) == "available"
    assert transporter.get("/api/transactions").json() == []


def test_open_transaction_unknown_listing_leaves_no_lock(buyer, store):
    lock = store.listing_lock(4242)
    assert open_transaction(buyer, 4242).status_code == 404
    assert store.listing_lock(4242) is not lock


class FailingUpdateStore(InMemoryStore):
    """Store whose transaction writes fail."""

    async def update_transaction(self, transaction_id, fields):
        raise RuntimeError("write failed")


async def _pickup_on_failing_store():
    store = FailingUpdateStore()
    collector = await store.create_user({
        "username": "col", "email": "col@example.com", "hashed_password": "x",
        "full_name": "Col", "role": UserRole.COLLECTOR,
    })
    transporter = await store.create_user({
        "username": "tra", "email": "tra@example.com", "hashed_password": "x",
        "full_name": "Tra", "role": UserRole.TRANSPORTER,
    })
    listing = await store.create_listing({
        "collector_id": collector.id, "material_type": MaterialType.METAL,
        "quantity": 2, "unit": "ton", "price": 50,
    })
    transaction = await transaction_service.create_transaction(
        store, transporter, TransactionCreate(listing_id=listing.id),
        policy=ReservationPolicy.TRANSPORTER_ONLY, single_active=True
    )
    return store, transporter, listing, transaction


@pytest.mark.parametrize("new_status", ["completed", "cancelled"])
def test_failed_status_write_restores_listing(new_status):
    async def scenario():
        store, transporter, listing, transaction = await _pickup_on_failing_store()
        with pytest.raises(RuntimeError):
            await transaction_service.update_transaction(
                store, transporter, transaction.id, TransactionUpdate(status=new_status)
            )
        return await store.get_listing(listing.id), await store.get_transaction(transaction.id)

    listing, transaction = asyncio.run(scenario())
    assert listing.status == ListingStatus.PENDING_PICKUP
    assert transaction.status == TransactionStatus.PENDING


def test_failed_shipment_write_restores_listing():
    async def scenario():
        store, transporter, listing, transaction = await _pickup_on_failing_store()
        with pytest.raises(RuntimeError):
            await transaction_service.advance_shipment(store, transporter, transaction.id)
        return await store.get_listing(listing.id)

    assert asyncio.run(scenario()).status == ListingStatus.PENDING_PICKUP


def test_reservation_policy_read_from_settings():
    app = _build_app(LISTING_RESERVATION_POLICY="ALL_PARTIES")
    assert app.state.settings.LISTING_RESERVATION_POLICY is ReservationPolicy.ALL_PARTIES
