"""
Database Schemas for the Pet Adoption & Donation API

Each Pydantic model below maps to a MongoDB collection. The collection name is the
lowercased class name by convention (DonationCampaign is stored in "campaign").
Fields are stored and returned in camelCase.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# -------------------------
# Collections
# -------------------------

class User(CamelModel):
    """
    Users collection schema
    Collection: "user"
    """
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Unique email address")
    photo_url: Optional[str] = Field(None, alias="photoURL", description="Profile image URL")
    role: str = Field("user", description="Account role")


class Pet(CamelModel):
    """
    Pets collection schema
    Collection: "pet"
    """
    name: str = Field(..., min_length=1, description="Pet name")
    age: int = Field(..., ge=0, description="Age in years")
    category: str = Field(..., min_length=1, description="Kind of animal, e.g. dog or cat")
    location: str = Field(..., min_length=1, description="Pickup location")
    image_url: Optional[str] = Field(None, description="Photo URL")
    short_description: str = Field(..., min_length=1)
    long_description: str = Field(..., min_length=1)
    adopted: bool = Field(False, description="Whether the pet has been adopted")
    user_email: str = Field(..., description="Email of the user who listed the pet")


class AdoptionStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class Adoption(CamelModel):
    """
    Adoption requests collection schema
    Collection: "adoption"
    """
    pet_id: str = Field(..., description="Pet id as string")
    pet_name: str
    pet_image: Optional[str] = None
    owner_email: str = Field(..., description="Email of the pet's owner")
    requester_email: str
    requester_name: str
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    status: AdoptionStatus = AdoptionStatus.pending


class DonatorEntry(CamelModel):
    """One recorded donation, embedded in its campaign's "donators" ledger."""
    email: str
    name: str
    amount: float = Field(..., gt=0)
    payment_reference: str
    donated_at: datetime


class DonationCampaign(CamelModel):
    """
    Donation campaigns collection schema
    Collection: "campaign"
    """
    title: str = Field(..., min_length=1)
    short_description: str = Field(..., min_length=1)
    long_description: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    goal_amount: float = Field(..., gt=0, description="Fundraising target")
    raised_amount: float = Field(0, ge=0, description="Sum of the donators ledger")
    paused: bool = Field(False, description="Paused campaigns are left out of recommendations")
    donators: List[DonatorEntry] = Field(default_factory=list)
    last_date: str = Field(..., min_length=1, description="Deadline, informational only")
    user_email: str = Field(..., description="Email of the campaign's creator")


# -------------------------
# Requests
# -------------------------

class TokenRequest(CamelModel):
    email: str = Field(..., min_length=3)


class PetCreate(CamelModel):
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    short_description: str = Field(..., min_length=1)
    long_description: str = Field(..., min_length=1)


class PetUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    short_description: Optional[str] = Field(None, min_length=1)
    long_description: Optional[str] = Field(None, min_length=1)


class AdoptedRequest(CamelModel):
    adopted: bool


class AdoptionCreate(CamelModel):
    pet_id: str
    requester_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)


class AdoptionDecision(CamelModel):
    status: AdoptionStatus

    @field_validator("status")
    @classmethod
    def not_pending(cls, v: AdoptionStatus) -> AdoptionStatus:
        if v == AdoptionStatus.pending:
            raise ValueError("status must be accepted or rejected")
        return v


class CampaignCreate(CamelModel):
    title: str = Field(..., min_length=1)
    short_description: str = Field(..., min_length=1)
    long_description: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    goal_amount: float = Field(..., gt=0)
    last_date: str = Field(..., min_length=1)


class CampaignUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    short_description: Optional[str] = Field(None, min_length=1)
    long_description: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    goal_amount: Optional[float] = Field(None, gt=0)
    last_date: Optional[str] = Field(None, min_length=1)


class PauseRequest(CamelModel):
    paused: bool


class DonateRequest(CamelModel):
    # amount and paymentMethodId are checked by CampaignService.donate
    amount: Optional[Union[StrictInt, StrictFloat]] = None
    payment_method_id: Optional[str] = None
    donor_name: Optional[str] = None


class RefundRequest(CamelModel):
    amount: Union[StrictInt, StrictFloat] = Field(..., gt=0)
    payment_reference: Optional[str] = None
