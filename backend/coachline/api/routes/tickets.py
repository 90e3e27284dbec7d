"""
Ticket lookup and boarding validation.
"""

from fastapi import APIRouter, Depends
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from coachline.db.session import get_db
from coachline.schemas.ticket import (
    QRTokenRequest,
    TicketListResponse,
    TicketResponse,
    TicketUseResponse,
    TicketValidationResponse,
)
from coachline.services import ticket_service

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/email/{email}", response_model=TicketListResponse)
async def list_tickets_by_email(email: EmailStr, db: AsyncSession = Depends(get_db)):
    return {"tickets": await ticket_service.list_tickets_by_email(db, str(email))}


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: str, db: AsyncSession = Depends(get_db)):
    return await ticket_service.get_ticket(db, ticket_id)


@router.post("/validate", response_model=TicketValidationResponse)
async def validate_ticket(request: QRTokenRequest, db: AsyncSession = Depends(get_db)):
    """Check a scanned code without consuming it."""
    return await ticket_service.validate_ticket(db, request.qr_token)


@router.post("/use", response_model=TicketUseResponse)
async def use_ticket(request: QRTokenRequest, db: AsyncSession = Depends(get_db)):
    """Consume the ticket. A second call for the same code fails with ticket_already_used."""
    ticket = await ticket_service.use_ticket(db, request.qr_token)
    return {"ticket": ticket}
