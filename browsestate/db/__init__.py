from browsestate.db.database import get_session, init_db
from browsestate.db.operations import (
    count_storage_rows,
    delete_session_item,
    delete_session_items,
    get_preference_item,
    get_preference_items,
    get_session_item,
    get_session_items,
    put_preference_item,
    put_session_item,
    sync_session_items,
)

__all__ = [
    "count_storage_rows",
    "delete_session_item",
    "delete_session_items",
    "get_preference_item",
    "get_preference_items",
    "get_session",
    "get_session_item",
    "get_session_items",
    "init_db",
    "put_preference_item",
    "put_session_item",
    "sync_session_items",
]
