import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.resources_service.models import (
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
    ReturnCondition,
)


class ResourceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None
    location: Optional[str] = None
    assigned_technician: Optional[uuid.UUID] = None
    next_maintenance_at: Optional[datetime] = None


class ResourceCreate(ResourceBase):
    quantity_total: int = Field(1, ge=1)


class ResourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None
    location: Optional[str] = None
    quantity_total: Optional[int] = Field(None, ge=0)
    status: Optional[ResourceStatus] = None
    assigned_technician: Optional[uuid.UUID] = None
    next_maintenance_at: Optional[datetime] = None


class ResourceResponse(ResourceBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    quantity_total: int
    quantity_available: int
    status: ResourceStatus
    last_maintenance_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResourceAssign(BaseModel):
    assignment_type: ResourceAssignmentType
    related_id: uuid.UUID
    quantity: int = Field(1, ge=1)
    expected_return_at: Optional[datetime] = None
    notes: Optional[str] = None


class ResourceReturn(BaseModel):
    condition: ReturnCondition = ReturnCondition.GOOD
    notes: Optional[str] = None


class MaintenanceRecord(BaseModel):
    interval_days: Optional[int] = Field(None, ge=1)
    technician_id: Optional[uuid.UUID] = None


class ResourceAssignmentResponse(BaseModel):
    id: uuid.UUID
    resource_id: uuid.UUID
    assignment_type: ResourceAssignmentType
    related_id: uuid.UUID
    quantity: int
    status: ResourceAssignmentStatus
    assigned_by: Optional[uuid.UUID] = None
    assigned_at: datetime
    expected_return_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    condition: Optional[ReturnCondition] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
