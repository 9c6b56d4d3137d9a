import enum
from uuid import uuid4

from sqlalchemy.dialects.postgresql import UUID

from app.extensions.database import db
from app.utils.datetime_utils import utc_now_naive

DESCRIPTION_MAX_LENGTH = 300


class TransactionType(enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = db.Column(UUID(as_uuid=True), nullable=False, index=True)

    type = db.Column(db.Enum(TransactionType), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(
        db.String(DESCRIPTION_MAX_LENGTH), nullable=False, default=""
    )
    date = db.Column(db.Date, nullable=False)

    payment_method = db.Column(db.String(50), nullable=True)
    vendor = db.Column(db.String(120), nullable=True)
    # Categories and accounts live in their own modules; only the ids are kept.
    category_id = db.Column(UUID(as_uuid=True), nullable=True)
    account_id = db.Column(UUID(as_uuid=True), nullable=True)

    installments = db.Column(db.Integer, nullable=True)
    installment_no = db.Column(db.Integer, nullable=True)
    installment_group_id = db.Column(UUID(as_uuid=True), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, description={self.description}, "
            f"amount={self.amount}, installment={self.installment_no}/"
            f"{self.installments})>"
        )
