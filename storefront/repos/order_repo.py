# storefront/repos/order_repo.py
from typing import Dict, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_line import OrderLineModel


class OrderRepo:
    """
    Zamowienia sa append-only: po utworzeniu zmieniaja sie tylko
    status / payment_status / payment_ref.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, lines: Sequence[OrderLineModel]) -> OrderModel:
        #zamowienie + linie w jednej transakcji, blad = nic nie zapisane
        try:
            self.db.add(order)
            self.db.flush()
            for position, line in enumerate(lines):
                line.order_id = order.id
                line.position = position
                self.db.add(line)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_lines(self, order_id: str) -> List[OrderLineModel]:
        return list(
            self.db.execute(
                select(OrderLineModel)
                .where(OrderLineModel.order_id == order_id)
                .order_by(OrderLineModel.position)
            ).scalars()
        )

    def get_lines_for(self, order_ids: Sequence[str]) -> Dict[str, List[OrderLineModel]]:
        result: Dict[str, List[OrderLineModel]] = {oid: [] for oid in order_ids}
        if not order_ids:
            return result
        rows = self.db.execute(
            select(OrderLineModel)
            .where(OrderLineModel.order_id.in_(list(order_ids)))
            .order_by(OrderLineModel.order_id, OrderLineModel.position)
        ).scalars()
        for line in rows:
            result.setdefault(line.order_id, []).append(line)
        return result

    def list_orders(self, user_id: str, limit: int, offset: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id)
                .limit(limit)
                .offset(offset)
            ).scalars()
        )

    def count_orders(self, user_id: str) -> int:
        return self.db.execute(
            select(func.count()).select_from(OrderModel).where(OrderModel.user_id == user_id)
        ).scalar_one()

    def update_order_payment(
        self,
        order_id: str,
        status: str,
        payment_status: str,
        payment_ref: str | None,
    ) -> OrderModel | None:
        order = self.get_order(order_id)
        if order:
            order.status = status
            order.payment_status = payment_status
            order.payment_ref = payment_ref
            try:
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(order)
        return order
