from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from fleetops.api.deps import require_any_role, require_supervisor
from fleetops.core.database import get_db
from fleetops.core.exceptions import NotFoundError
from fleetops.models.user import User
from fleetops.schemas.part import PartCreate, PartUpdate, PartResponse, StockMovement
from fleetops.services.inventory import InventoryLedger, PartCatalog, LOW_STOCK_THRESHOLD

router = APIRouter()


@router.get("", response_model=List[PartResponse])
def list_parts(skip: int = 0, limit: int = 100, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return PartCatalog(db).list(skip=skip, limit=limit)


@router.get("/low-stock", response_model=List[PartResponse])
def low_stock(
    threshold: int = LOW_STOCK_THRESHOLD,
    db: Session = Depends(get_db),
    _: User = Depends(require_supervisor),
):
    """Parts at or below the restock threshold."""
    return PartCatalog(db).low_stock(threshold)


@router.get("/code/{code}", response_model=PartResponse)
def get_part_by_code(code: str, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    part = PartCatalog(db).find_by_code(code)
    if not part:
        raise NotFoundError(f"Part {code} not found")
    return part


@router.get("/{part_id}", response_model=PartResponse)
def get_part(part_id: int, db: Session = Depends(get_db), _: User = Depends(require_any_role)):
    return InventoryLedger(db).get(part_id)


@router.post("", response_model=PartResponse, status_code=201)
def create_part(data: PartCreate, db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    return PartCatalog(db).create(data)


@router.patch("/{part_id}", response_model=PartResponse)
def update_part(part_id: int, data: PartUpdate, db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    return PartCatalog(db).update(part_id, data)


@router.post("/{part_id}/restock", response_model=PartResponse)
def restock_part(
    part_id: int,
    movement: StockMovement,
    db: Session = Depends(get_db),
    _: User = Depends(require_supervisor),
):
    return InventoryLedger(db).restock_and_commit(part_id, movement.quantity)


@router.post("/{part_id}/deduct", response_model=PartResponse)
def deduct_part(
    part_id: int,
    movement: StockMovement,
    db: Session = Depends(get_db),
    _: User = Depends(require_supervisor),
):
    """Manual stock adjustment outside a work order."""
    return InventoryLedger(db).deduct_and_commit(part_id, movement.quantity)


@router.delete("/{part_id}", status_code=204)
def archive_part(part_id: int, db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    PartCatalog(db).archive(part_id)
