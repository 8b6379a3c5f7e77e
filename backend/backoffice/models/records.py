from __future__ import annotations

from ..extensions import db


class StoredRecord(db.Model):
    """
    One document in one of the entity collections (customers, products, sales).

    The entity store treats the payload as opaque JSON; the record id is
    assigned by the store on create and never reused.
    """
    __tablename__ = "records"
    __table_args__ = (
        db.UniqueConstraint("collection", "record_id", name="uq_records_collection_record_id"),
        db.Index("ix_records_collection", "collection"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(32), nullable=False)
    record_id = db.Column(db.String(64), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
