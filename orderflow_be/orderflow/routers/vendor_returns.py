from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from orderflow.models.user import User, get_db
from orderflow.models.status import RequestType
from orderflow.routers.orders import map_request_to_out
from orderflow.schemas.return_request import RequestActionOut, RequestRejectIn, ReturnReplaceOut
from orderflow.services import returns as return_service
from orderflow.services.notifications import notify_request_decision
from orderflow.utils.security import get_current_user


router = APIRouter()


# Get Return/Replace Requests (vendor's products; admin sees all)
@router.get("/", response_model=List[ReturnReplaceOut])
def get_return_replace_requests(
    status: str = Query("pending"),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    reqs = return_service.list_vendor_requests(db, user, status=status, request_type=type)
    return [map_request_to_out(r) for r in reqs]


# Approve Return/Replace Request
@router.post("/{id}/approve", response_model=RequestActionOut)
def approve_request(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    req = return_service.approve_request(db, id, user)
    notify_request_decision(req)
    outcome = "Refund processed." if req.type == RequestType.RETURN.value else "Replacement processed."
    return RequestActionOut(message=f"Request approved successfully. {outcome}", request=map_request_to_out(req))


# Reject Return/Replace Request
@router.post("/{id}/reject", response_model=RequestActionOut)
def reject_request(
    id: int,
    payload: Optional[RequestRejectIn] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    req = return_service.reject_request(db, id, user, payload.rejectionReason if payload else None)
    notify_request_decision(req)
    return RequestActionOut(message="Request rejected successfully", request=map_request_to_out(req))
