"""
Donation campaigns: store access, donation capture, refunds, pausing and
recommendations.

Every write touches a single campaign document. A donation is two steps,
payment capture then ledger update, with no compensation if the second step
fails after the first succeeded.
"""
import math
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from database import oid, serialize, to_document, utcnow
from errors import NotFoundError, StoreError, ValidationError
from payments import PaymentGateway, to_minor_units
from schemas import CampaignCreate, CampaignUpdate, DonationCampaign, DonatorEntry

logger = structlog.get_logger(__name__)

CAMPAIGN_COLLECTION = "campaign"


@contextmanager
def store_errors(operation: str):
    try:
        yield
    except PyMongoError as e:
        logger.error("Campaign store failure", operation=operation, error=str(e))
        raise StoreError(str(e))


class CampaignStore:
    """Thin wrapper over the campaign collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def insert(self, doc: Dict[str, Any]) -> ObjectId:
        with store_errors("insert"):
            return self.collection.insert_one(doc).inserted_id

    def find_by_id(self, campaign_id: ObjectId) -> Optional[Dict[str, Any]]:
        with store_errors("find_by_id"):
            return self.collection.find_one({"_id": campaign_id})

    def find_many(self, filter_dict: Dict[str, Any], sort: Optional[List[Tuple[str, int]]] = None,
                  skip: int = 0, limit: int = 0) -> List[Dict[str, Any]]:
        with store_errors("find_many"):
            cursor = self.collection.find(filter_dict)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)

    def update_one(self, filter_dict: Dict[str, Any], patch: Dict[str, Any]) -> int:
        """Apply a single-document update and return the matched count."""
        with store_errors("update_one"):
            return self.collection.update_one(filter_dict, patch).matched_count

    def delete_one(self, filter_dict: Dict[str, Any]) -> int:
        with store_errors("delete_one"):
            return self.collection.delete_one(filter_dict).deleted_count

    def random_sample(self, filter_dict: Dict[str, Any], n: int) -> List[Dict[str, Any]]:
        with store_errors("random_sample"):
            return list(self.collection.aggregate([{"$match": filter_dict}, {"$sample": {"size": n}}]))

    def count(self, filter_dict: Dict[str, Any]) -> int:
        with store_errors("count"):
            return self.collection.count_documents(filter_dict)


def append_donation(entry: DonatorEntry) -> Dict[str, Any]:
    """Update that records a donation in the ledger and the raised total."""
    return {
        "$inc": {"raisedAmount": entry.amount},
        "$push": {"donators": entry.model_dump(by_alias=True)},
        "$set": {"updatedAt": utcnow()},
    }


def remove_donation(entry: Dict[str, Any], amount: float) -> Dict[str, Any]:
    """Update that pulls one ledger entry and takes `amount` off the raised total.

    The entry is matched on all of its recorded fields, so only that entry is
    removed even when the donor has given more than once.
    """
    return {
        "$pull": {"donators": {
            "email": entry["email"],
            "paymentReference": entry.get("paymentReference"),
            "donatedAt": entry.get("donatedAt"),
        }},
        "$inc": {"raisedAmount": -amount},
        "$set": {"updatedAt": utcnow()},
    }


def select_refund_entry(donators: List[Dict[str, Any]], email: str, amount: float,
                        payment_reference: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Pick the ledger entry a refund applies to.

    By payment reference when given, otherwise the donor's oldest entry for
    the same amount. The chosen entry's amount must equal the refund amount,
    so the raised total always stays the sum of the ledger.
    """
    own = [d for d in donators if d.get("email") == email]
    if not own:
        return None
    if payment_reference:
        entry = next((d for d in own if d.get("paymentReference") == payment_reference), None)
    else:
        entry = next((d for d in own if d.get("amount") == amount), None)
        if entry is None:
            raise ValidationError("Refund amount does not match a recorded donation",
                                  [{"field": "amount", "message": "No donation for this amount"}])
    if entry is not None and entry.get("amount") != amount:
        raise ValidationError("Refund amount does not match the recorded donation",
                              [{"field": "amount", "message": f"Recorded amount is {entry.get('amount')}"}])
    return entry


class CampaignService:
    """Business logic for donation campaigns"""

    def __init__(self, store: CampaignStore, gateway: Optional[PaymentGateway] = None, currency: str = "usd"):
        self.store = store
        self.gateway = gateway
        self.currency = currency

    def create(self, data: CampaignCreate, owner_email: str) -> Dict[str, Any]:
        campaign = DonationCampaign(**data.model_dump(), user_email=owner_email)
        doc = to_document(campaign)
        now = utcnow()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        doc["_id"] = self.store.insert(doc)
        logger.info("Campaign created", campaign_id=str(doc["_id"]), owner=owner_email)
        return serialize(doc)

    def list(self, page: int = 1, limit: int = 9) -> Dict[str, Any]:
        docs = self.store.find_many({}, sort=[("createdAt", DESCENDING)], skip=(page - 1) * limit, limit=limit)
        return {"donations": [serialize(d) for d in docs], "totalCount": self.store.count({})}

    def get(self, campaign_id: str) -> Dict[str, Any]:
        doc = self.store.find_by_id(oid(campaign_id))
        if not doc:
            raise NotFoundError("Campaign not found")
        return serialize(doc)

    def by_owner(self, email: str) -> List[Dict[str, Any]]:
        docs = self.store.find_many({"userEmail": email}, sort=[("createdAt", DESCENDING)])
        return [serialize(d) for d in docs]

    def donations_by(self, email: str) -> List[Dict[str, Any]]:
        docs = self.store.find_many({"donators.email": email}, sort=[("createdAt", DESCENDING)])
        result = []
        for doc in docs:
            for entry in doc.get("donators", []):
                if entry.get("email") == email:
                    result.append({**entry, "campaignId": str(doc["_id"]), "title": doc.get("title"),
                                   "imageUrl": doc.get("imageUrl")})
        return result

    def update(self, campaign_id: str, data: CampaignUpdate) -> Dict[str, Any]:
        _id = oid(campaign_id)
        fields = data.model_dump(by_alias=True, exclude_unset=True)
        if not fields:
            raise ValidationError("No fields to update")
        fields["updatedAt"] = utcnow()
        if not self.store.update_one({"_id": _id}, {"$set": fields}):
            raise NotFoundError("Campaign not found")
        return serialize(self.store.find_by_id(_id))

    def delete(self, campaign_id: str) -> Dict[str, int]:
        deleted = self.store.delete_one({"_id": oid(campaign_id)})
        if not deleted:
            raise NotFoundError("Campaign not found")
        logger.info("Campaign deleted", campaign_id=campaign_id)
        return {"deletedCount": deleted}

    def set_paused(self, campaign_id: str, paused: bool) -> Dict[str, Any]:
        _id = oid(campaign_id)
        matched = self.store.update_one({"_id": _id}, {"$set": {"paused": paused, "updatedAt": utcnow()}})
        if not matched:
            raise NotFoundError("Campaign not found")
        logger.info("Campaign pause changed", campaign_id=campaign_id, paused=paused)
        return {"success": True, "paused": paused}

    def donate(self, campaign_id: str, amount: Any, payment_method: Optional[str],
               donor_email: str, donor_name: Optional[str] = None) -> Dict[str, Any]:
        """Capture a donation and record it in the campaign ledger."""
        _id = oid(campaign_id)
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
                or not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Invalid donation amount",
                                  [{"field": "amount", "message": "Amount must be greater than 0"}])
        if not payment_method:
            raise ValidationError("Payment method is required",
                                  [{"field": "paymentMethodId", "message": "Field required"}])
        if not self.store.find_by_id(_id):
            raise NotFoundError("Campaign not found")
        if self.gateway is None:
            raise ValidationError("Payment gateway is not available")

        donor_name = donor_name or donor_email
        confirmation = self.gateway.create_payment_intent(
            to_minor_units(amount),
            self.currency,
            payment_method,
            {"campaignId": campaign_id, "donorEmail": donor_email, "donorName": donor_name},
        )

        entry = DonatorEntry(
            email=donor_email,
            name=donor_name,
            amount=float(amount),
            payment_reference=confirmation.payment_intent_id,
            donated_at=utcnow(),
        )
        if not self.store.update_one({"_id": _id}, append_donation(entry)):
            # payment is already captured; nothing reconciles it
            logger.warning("Campaign vanished after payment capture", campaign_id=campaign_id,
                           payment_intent_id=confirmation.payment_intent_id, amount=amount)
            raise NotFoundError("Campaign not found")

        logger.info("Donation recorded", campaign_id=campaign_id, donor=donor_email, amount=amount,
                    payment_intent_id=confirmation.payment_intent_id)
        return {"clientSecret": confirmation.client_secret}

    def refund(self, campaign_id: str, donor_email: str, amount: float,
               payment_reference: Optional[str] = None) -> Dict[str, Any]:
        """Remove one of the donor's ledger entries. Bookkeeping only, no money moves."""
        _id = oid(campaign_id)
        if amount is None or amount <= 0:
            raise ValidationError("Invalid refund amount",
                                  [{"field": "amount", "message": "Amount must be greater than 0"}])
        doc = self.store.find_by_id(_id)
        if not doc:
            raise NotFoundError("Campaign not found")
        entry = select_refund_entry(doc.get("donators", []), donor_email, amount, payment_reference)
        if entry is None:
            raise NotFoundError("No donation found for this donor")

        matched = self.store.update_one(
            {"_id": _id, "donators": {"$elemMatch": {"email": donor_email,
                                                      "paymentReference": entry.get("paymentReference")}}},
            remove_donation(entry, amount),
        )
        if not matched:
            raise NotFoundError("No donation found for this donor")
        logger.info("Refund recorded", campaign_id=campaign_id, donor=donor_email, amount=amount,
                    payment_reference=entry.get("paymentReference"))
        return {"success": True}

    def donators(self, campaign_id: str) -> List[Dict[str, Any]]:
        doc = self.store.find_by_id(oid(campaign_id))
        if not doc:
            raise NotFoundError("Campaign not found")
        return doc.get("donators", [])

    def recommend(self, exclude_id: str, sample_size: int = 3) -> List[Dict[str, Any]]:
        """Random non-paused campaigns other than `exclude_id`."""
        _id = oid(exclude_id)
        docs = self.store.random_sample({"paused": {"$ne": True}, "_id": {"$ne": _id}}, sample_size)
        if not docs:
            raise NotFoundError("No recommended campaigns found")
        return [serialize(d) for d in docs]
