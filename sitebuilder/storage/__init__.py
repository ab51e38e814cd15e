"""File-backed JSON stores for users and orders."""
from .json_store import JsonDocumentStore
from .orders import OrderStore
from .users import User, UserStore

__all__ = ["JsonDocumentStore", "OrderStore", "User", "UserStore"]
