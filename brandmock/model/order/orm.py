from sqlalchemy.orm import declarative_base
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
)


Base = declarative_base()

STATUS_PENDING = "pending"


# ----------------------------
# ORM models
# ----------------------------
class Order(Base):
    __tablename__ = "orders"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    product = Column(String, nullable=False, default="")
    package_type = Column(String, nullable=False, default="starter")

    # filenames relative to the uploads dir
    logo_path = Column(String, nullable=True)
    mockup_path = Column(String, nullable=True)

    status = Column(String, nullable=False, default=STATUS_PENDING)
    created_at = Column(Float, nullable=False, index=True)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "product": self.product,
            "package_type": self.package_type,
            "logo_path": self.logo_path,
            "mockup_path": self.mockup_path,
            "status": self.status,
            "created_at": self.created_at,
        }


# written by the mock payment provider only
class PaymentSession(Base):
    __tablename__ = "payment_sessions"
    id = Column(String, primary_key=True)
    order_id = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)  # cents
    currency = Column(String, nullable=False)
    label = Column(String, nullable=False)
    customer_email = Column(String, nullable=False, default="")
    success_url = Column(String, nullable=False)
    cancel_url = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)
