from fastapi import APIRouter, Depends, Query, status
from pymongo.database import Database

from auth import AuthUser, get_current_user
from campaigns import CAMPAIGN_COLLECTION, CampaignService, CampaignStore
from config import Settings, get_settings
from database import get_db
from payments import PaymentGateway, get_payment_gateway
from schemas import CampaignCreate, CampaignUpdate, DonateRequest, PauseRequest, RefundRequest

router = APIRouter(prefix="/donations", tags=["donations"])


def get_campaign_service(
    db: Database = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
) -> CampaignService:
    return CampaignService(CampaignStore(db[CAMPAIGN_COLLECTION]), gateway, settings.currency)


@router.post("/add", status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: CampaignCreate,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.create(payload, user.email)


@router.get("")
def list_campaigns(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(9, ge=1, le=100, description="Campaigns per page"),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.list(page=page, limit=limit)


@router.get("/my-campaigns")
def my_campaigns(
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.by_owner(user.email)


@router.get("/my-donations")
def my_donations(
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.donations_by(user.email)


@router.get("/donators/{campaign_id}")
def list_donators(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return service.donators(campaign_id)


@router.get("/recommended/{campaign_id}")
def recommended_campaigns(
    campaign_id: str,
    size: int = Query(3, ge=1, le=20, description="How many campaigns to sample"),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.recommend(campaign_id, size)


@router.get("/{campaign_id}")
def get_campaign(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return service.get(campaign_id)


@router.patch("/update/{campaign_id}")
def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.update(campaign_id, payload)


@router.patch("/pause/{campaign_id}")
def pause_campaign(
    campaign_id: str,
    payload: PauseRequest,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.set_paused(campaign_id, payload.paused)


@router.post("/{campaign_id}/donate")
def donate(
    campaign_id: str,
    payload: DonateRequest,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.donate(campaign_id, payload.amount, payload.payment_method_id, user.email, payload.donor_name)


@router.post("/refund/{campaign_id}")
def refund(
    campaign_id: str,
    payload: RefundRequest,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.refund(campaign_id, user.email, payload.amount, payload.payment_reference)


@router.delete("/{campaign_id}")
def delete_campaign(
    campaign_id: str,
    user: AuthUser = Depends(get_current_user),
    service: CampaignService = Depends(get_campaign_service),
):
    return service.delete(campaign_id)
