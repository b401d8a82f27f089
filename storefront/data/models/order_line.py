# storefront/data/models/order_line.py
import uuid

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderLineModel(Base):
    """Zamrozona kopia pozycji z chwili zakupu, bez FK do katalogu."""

    __tablename__ = "order_lines"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    item_id = Column(String(64), nullable=False)
    title = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False)
    qty = Column(Integer, nullable=False)
    image_url = Column(String(512), nullable=True)

    order = relationship("OrderModel", back_populates="lines")
