from sqlalchemy import Table, Column, String, Text, Float, Boolean, MetaData

metadata = MetaData()


# Колонки совпадают с ключами строк JSON документа
orders_tbl = Table(
    "orders",
    metadata,
    Column("order_id", String, primary_key=True),
    Column("client_name", String, nullable=False),
    Column("mobile", String, nullable=True),
    Column("status", String, nullable=False, index=True),
    Column("items_json", Text, nullable=False, default="[]"),
    Column("total_amount", Float, nullable=True),
    Column("is_locked", Boolean, default=False),
    Column("audit_log", Text, nullable=False, default="[]"),
    Column("created_at", String, nullable=False),
    Column("payment_status", String, default="pending"),
    Column("goods_received_date", String, nullable=True),
    Column("dispatch_date", String, nullable=True),
    Column("meta_json", Text, nullable=False, default="{}")
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", Text, default=""),
    Column("unitOfMeasure", String, nullable=False),
    Column("category", String, nullable=True),
    Column("imageUrl", String, nullable=True),
    Column("unitPrice", Float, nullable=True)
)


TABLES = {tbl.name: tbl for tbl in (orders_tbl, products_tbl)}
