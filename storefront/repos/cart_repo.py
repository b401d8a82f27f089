# storefront/repos/cart_repo.py
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.cart_line import CartLineModel


class CartRepo:
    """
    Dostep do cart_lines. Kazde zapytanie filtrowane po user_id,
    nie ma operacji na cudzych wierszach.
    Kazda mutacja = osobny commit (last write wins na poziomie linii).
    """

    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, user_id: str) -> List[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel)
                .where(CartLineModel.user_id == user_id)
                .order_by(CartLineModel.created_at, CartLineModel.id)
            ).scalars()
        )

    def get_line(self, user_id: str, item_id: str) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.user_id == user_id,
                CartLineModel.item_id == item_id,
            )
        ).scalar_one_or_none()

    def upsert_line(self, user_id: str, item_id: str, qty: int) -> CartLineModel:
        line = self.get_line(user_id, item_id)
        if line:
            line.qty = qty
        else:
            line = CartLineModel(user_id=user_id, item_id=item_id, qty=qty)
            self.db.add(line)
        self._commit()
        self.db.refresh(line)
        return line

    def delete_line(self, user_id: str, item_id: str) -> int:
        res = self.db.execute(
            delete(CartLineModel).where(
                CartLineModel.user_id == user_id,
                CartLineModel.item_id == item_id,
            )
        )
        self._commit()
        return res.rowcount

    def clear_lines(self, user_id: str) -> int:
        res = self.db.execute(delete(CartLineModel).where(CartLineModel.user_id == user_id))
        self._commit()
        return res.rowcount

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
