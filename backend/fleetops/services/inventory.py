"""Parts catalog and stock ledger."""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from fleetops.core.database import transaction
from fleetops.core.exceptions import BadRequestError, ConflictError, NotFoundError
from fleetops.models.part import Part
from fleetops.schemas.part import PartCreate, PartUpdate

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10


class InventoryLedger:
    """Stock movements for parts.

    ``deduct`` and ``restock`` only flush; the caller's transaction decides
    when the movement becomes durable. The ``*_and_commit`` wrappers are for
    standalone use from the API.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, part_id: int) -> Part:
        part = self.db.query(Part).filter(Part.id == part_id, Part.is_archived == False).first()  # noqa: E712
        if not part:
            raise NotFoundError(f"Part {part_id} not found")
        return part

    def deduct(self, part_id: int, quantity: int) -> Part:
        """Remove stock immediately. Fails without touching stock if short."""
        if quantity <= 0:
            raise BadRequestError("Quantity must be greater than zero")

        part = self.get(part_id)
        if quantity > part.stock_quantity:
            raise BadRequestError(
                f"Insufficient stock for {part.name}. Available: {part.stock_quantity}, requested: {quantity}"
            )

        # Conditional decrement: a concurrent deduction that drained the stock
        # after our read makes this match zero rows instead of going negative.
        result = self.db.execute(
            update(Part)
            .where(Part.id == part_id, Part.stock_quantity >= quantity)
            .values(stock_quantity=Part.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.refresh(part)
            raise BadRequestError(
                f"Insufficient stock for {part.name}. Available: {part.stock_quantity}, requested: {quantity}"
            )

        self.db.refresh(part)
        logger.info(f"Stock deducted: {part.code} - {quantity} units. New stock: {part.stock_quantity}")
        return part

    def restock(self, part_id: int, quantity: int) -> Part:
        if quantity <= 0:
            raise BadRequestError("Quantity must be greater than zero")

        part = self.get(part_id)
        self.db.execute(
            update(Part)
            .where(Part.id == part_id)
            .values(stock_quantity=Part.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(part)
        logger.info(f"Stock added: {part.code} + {quantity} units. New stock: {part.stock_quantity}")
        return part

    def deduct_and_commit(self, part_id: int, quantity: int) -> Part:
        with transaction(self.db):
            part = self.deduct(part_id, quantity)
        return part

    def restock_and_commit(self, part_id: int, quantity: int) -> Part:
        with transaction(self.db):
            part = self.restock(part_id, quantity)
        return part


class PartCatalog:
    """CRUD over the parts catalog."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, data: PartCreate) -> Part:
        if self.find_by_code(data.code):
            raise ConflictError(f"A part with code {data.code} already exists")

        part = Part(**data.model_dump())
        with transaction(self.db):
            self.db.add(part)
        self.db.refresh(part)
        logger.info(f"New part created: {part.code} - {part.name}, stock: {part.stock_quantity}")
        return part

    def update(self, part_id: int, data: PartUpdate) -> Part:
        part = InventoryLedger(self.db).get(part_id)
        update_data = data.model_dump(exclude_unset=True)

        new_code = update_data.get("code")
        if new_code and new_code != part.code and self.find_by_code(new_code):
            raise ConflictError(f"A part with code {new_code} already exists")

        with transaction(self.db):
            for key, value in update_data.items():
                setattr(part, key, value)
        self.db.refresh(part)
        logger.info(f"Part updated: {part.code} - {part.name}")
        return part

    def archive(self, part_id: int) -> None:
        part = InventoryLedger(self.db).get(part_id)
        with transaction(self.db):
            part.is_archived = True
        logger.info(f"Part archived: {part.code}")

    def find_by_code(self, code: str) -> Optional[Part]:
        return self.db.query(Part).filter(Part.code == code).first()

    def list(self, skip: int = 0, limit: int = 100) -> List[Part]:
        return (
            self.db.query(Part)
            .filter(Part.is_archived == False)  # noqa: E712
            .order_by(Part.code.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def low_stock(self, threshold: int = LOW_STOCK_THRESHOLD) -> List[Part]:
        return (
            self.db.query(Part)
            .filter(Part.is_archived == False, Part.stock_quantity <= threshold)  # noqa: E712
            .order_by(Part.stock_quantity.asc())
            .all()
        )
