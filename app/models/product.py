from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, DDL, Integer, Numeric, String, Text, Uuid, event,
)
from sqlalchemy.sql import func
from app.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=False), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    image = Column(Text, nullable=True)  # URL to the image
    price = Column(Numeric(10, 2), nullable=False)
    qty = Column(Integer, nullable=False, default=0, server_default="0")
    # maintained by the database triggers below, never written by callers
    out_of_stock = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_products_qty_non_negative"),
    )


# Same statements the Alembic migration installs on PostgreSQL.
POSTGRES_TRIGGERS = [
    """
    CREATE OR REPLACE FUNCTION update_updated_at_column()
    RETURNS TRIGGER AS $$
    BEGIN
        NEW.updated_at = NOW();
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    """
    CREATE TRIGGER update_products_updated_at
    BEFORE UPDATE ON products
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column()
    """,
    """
    CREATE OR REPLACE FUNCTION update_out_of_stock_status()
    RETURNS TRIGGER AS $$
    BEGIN
        NEW.out_of_stock = (NEW.qty = 0);
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """,
    """
    CREATE TRIGGER set_out_of_stock_on_qty_change
    BEFORE INSERT OR UPDATE OF qty ON products
    FOR EACH ROW
    EXECUTE FUNCTION update_out_of_stock_status()
    """,
]

# SQLite cannot assign NEW in a BEFORE trigger, so it patches the row afterwards.
SQLITE_TRIGGERS = [
    """
    CREATE TRIGGER set_out_of_stock_on_insert
    AFTER INSERT ON products
    FOR EACH ROW
    BEGIN
        UPDATE products SET out_of_stock = (NEW.qty = 0) WHERE id = NEW.id;
    END
    """,
    """
    CREATE TRIGGER set_out_of_stock_on_qty_change
    AFTER UPDATE OF qty ON products
    FOR EACH ROW
    BEGIN
        UPDATE products
        SET out_of_stock = (NEW.qty = 0), updated_at = CURRENT_TIMESTAMP
        WHERE id = NEW.id;
    END
    """,
]

for _statement in POSTGRES_TRIGGERS:
    event.listen(
        Product.__table__, "after_create", DDL(_statement).execute_if(dialect="postgresql")
    )
for _statement in SQLITE_TRIGGERS:
    event.listen(
        Product.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite")
    )
