from app.models.kv_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
