from __future__ import annotations

# -----------------------------------------------------------------------------
# Repository layer
# -----------------------------------------------------------------------------
# One repository per collection of the site. Admin forms hand in loosely typed
# dicts; the repositories map them onto stored documents and back.
# -----------------------------------------------------------------------------

import functools
import logging
import math
import sqlite3
from typing import Any, Dict, List, Optional

from opessocius.store.documents import SERVER_TIMESTAMP, DocumentNotFound, DocumentStore
from opessocius.store.timestamps import from_timestamp, to_timestamp

logger = logging.getLogger(__name__)


def _logged(action: str):
    """Log storage failures with the failing action, then re-raise."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (sqlite3.Error, DocumentNotFound):
                logger.exception("Error %s", action)
                raise

        return wrapper

    return decorator


def _to_float(value: Any) -> float:
    """Finite float (sign kept) or 0.0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_int(value: Any) -> int:
    return int(_to_float(value))


def _first(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


class UserRepository:
    """Investor accounts (``users`` collection)."""

    COLLECTION = "users"

    # admin form field -> stored field
    FORM_FIELDS = {
        "username": "username",
        "email": "email",
        "name": "fullName",
        "phone": "phone",
        "account": "accountNumber",
        "status": "accountStatus",
        "country": "country",
        "initial": "initialInvestment",
        "strategy": "investmentStrategy",
        "operator": "assignedOperatorEmail",
    }

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @_logged("creating user")
    def create(self, form: Dict[str, Any]) -> str:
        initial = form.get("initial") or 0
        doc = {
            "username": form.get("username"),
            "email": form.get("email"),
            "phone": form.get("phone") or "",
            "accountNumber": form.get("account") or "",
            "accountStatus": form.get("status") or "Active",
            "country": form.get("country") or "",
            "memberSince": to_timestamp(form.get("memberSince")),
            "fullName": form.get("name") or "",
            "initialInvestment": initial,
            "currentBalance": initial,
            "totalReturn": 0,
            "investmentStrategy": form.get("strategy") or "",
            "assignedOperatorEmail": form.get("operator") or "",
            "type": form.get("type") or "investor",
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        user_id = self.store.add(self.COLLECTION, doc)
        logger.info("User created with id %s", user_id)
        return user_id

    @_logged("updating user")
    def update(self, user_id: str, form: Dict[str, Any]) -> None:
        """Partial update: only keys present in ``form`` are written."""
        changes: Dict[str, Any] = {"updatedAt": SERVER_TIMESTAMP}
        for form_key, field_name in self.FORM_FIELDS.items():
            if form_key in form:
                changes[field_name] = form[form_key]
        if "memberSince" in form:
            changes["memberSince"] = to_timestamp(form["memberSince"])
        # currentBalance / totalReturn only move through update_balance
        self.store.update(self.COLLECTION, user_id, changes)

    @_logged("deleting user")
    def delete(self, user_id: str) -> None:
        self.store.delete(self.COLLECTION, user_id)

    def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.COLLECTION, user_id)

    def get_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return _first(self.store.query(self.COLLECTION, where=[("username", username)], limit=1))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return _first(self.store.query(self.COLLECTION, where=[("email", email)], limit=1))

    def list_users(self, user_type: Optional[str] = None) -> List[Dict[str, Any]]:
        where = [("type", user_type)] if user_type else []
        return self.store.query(self.COLLECTION, where=where, order_by="createdAt", descending=True)

    @_logged("updating user balance")
    def update_balance(self, user_id: str, new_balance: float) -> None:
        """Store a new balance and the return (in percent) against the initial investment."""
        user = self.store.get(self.COLLECTION, user_id)
        if user is None:
            return
        new_balance = _to_float(new_balance)
        initial = _to_float(user.get("initialInvestment"))
        total_return = (new_balance - initial) / initial * 100 if initial > 0 else 0
        self.store.update(
            self.COLLECTION,
            user_id,
            {"currentBalance": new_balance, "totalReturn": total_return, "updatedAt": SERVER_TIMESTAMP},
        )

    @staticmethod
    def to_admin_portal(user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": user.get("id"),
            "username": user.get("username") or "",
            "email": user.get("email") or "",
            "name": user.get("fullName") or "",
            "phone": user.get("phone") or "",
            "account": user.get("accountNumber") or "",
            "status": user.get("accountStatus") or "Active",
            "country": user.get("country") or "",
            "memberSince": from_timestamp(user.get("memberSince")),
            "initial": user.get("initialInvestment") or 0,
            "balance": user.get("currentBalance") or 0,
            "return": user.get("totalReturn") or 0,
            "strategy": user.get("investmentStrategy") or "",
            "operator": user.get("assignedOperatorEmail") or "",
            "type": user.get("type") or "investor",
            "createdAt": user.get("createdAt"),
            "updatedAt": user.get("updatedAt"),
        }

    @staticmethod
    def from_admin_portal(form: Dict[str, Any]) -> Dict[str, Any]:
        keys = list(UserRepository.FORM_FIELDS) + ["memberSince"]
        data = {key: form.get(key) for key in keys}
        data["type"] = form.get("type") or "investor"
        return data


class LearningUserRepository:
    """Learning-community members (``learningUsers`` collection)."""

    COLLECTION = "learningUsers"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @_logged("creating learning user")
    def create(self, form: Dict[str, Any]) -> str:
        first = form.get("firstname") or ""
        last = form.get("lastname") or ""
        doc = {
            "username": form.get("username") or "",
            "email": form.get("email") or "",
            "phone": form.get("phone") or "",
            "fullName": f"{first} {last}".strip(),
            "firstName": first,
            "lastName": last,
            "type": "learning",
            "tier": form.get("tier") or "tier1",
            "active": form.get("active") is not False,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        return self.store.add(self.COLLECTION, doc)

    @_logged("updating learning user")
    def update(self, user_id: str, form: Dict[str, Any]) -> None:
        changes: Dict[str, Any] = {"updatedAt": SERVER_TIMESTAMP}
        for key in ("username", "email", "phone", "tier", "active"):
            if key in form:
                changes[key] = form[key]
        if "firstname" in form or "lastname" in form:
            current = self.store.get(self.COLLECTION, user_id) or {}
            first = form["firstname"] if "firstname" in form else current.get("firstName", "")
            last = form["lastname"] if "lastname" in form else current.get("lastName", "")
            changes.update(firstName=first, lastName=last, fullName=f"{first} {last}".strip())
        self.store.update(self.COLLECTION, user_id, changes)

    @_logged("deleting learning user")
    def delete(self, user_id: str) -> None:
        self.store.delete(self.COLLECTION, user_id)

    def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.COLLECTION, user_id)

    def get_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return _first(self.store.query(self.COLLECTION, where=[("username", username)], limit=1))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return _first(self.store.query(self.COLLECTION, where=[("email", email)], limit=1))

    def list_users(self) -> List[Dict[str, Any]]:
        return self.store.query(self.COLLECTION, order_by="createdAt", descending=True)


class ModuleRepository:
    """Course modules (``learningModules`` collection)."""

    COLLECTION = "learningModules"
    FIELDS = ("title", "description", "content", "image", "additionalImages", "order", "published")

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @_logged("creating module")
    def create(self, form: Dict[str, Any]) -> str:
        doc = {
            "title": form.get("title") or "",
            "description": form.get("description") or "",
            "content": form.get("content") or "",
            "image": form.get("image") or "",
            "additionalImages": form.get("additionalImages") or [],
            "order": _to_int(form.get("order")),
            "published": form.get("published") is not False,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        return self.store.add(self.COLLECTION, doc)

    @_logged("updating module")
    def update(self, module_id: str, form: Dict[str, Any]) -> None:
        changes: Dict[str, Any] = {key: form[key] for key in self.FIELDS if key in form}
        changes["updatedAt"] = SERVER_TIMESTAMP
        self.store.update(self.COLLECTION, module_id, changes)

    @_logged("deleting module")
    def delete(self, module_id: str) -> None:
        self.store.delete(self.COLLECTION, module_id)

    def get_by_id(self, module_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.COLLECTION, module_id)

    def list_modules(self, published_only: bool = False) -> List[Dict[str, Any]]:
        where = [("published", True)] if published_only else []
        return self.store.query(self.COLLECTION, where=where, order_by="order")


class CommunityMessageRepository:
    """Announcements posted to the learning community (``communityMessages``)."""

    COLLECTION = "communityMessages"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @_logged("saving community message")
    def save(self, form: Dict[str, Any]) -> str:
        doc = {
            "title": (form.get("title") or "").strip(),
            "subheading": (form.get("subheading") or "").strip(),
            "link": (form.get("link") or "").strip(),
            "message": (form.get("message") or "").strip(),
            "imageUrls": [],
            "professor": form.get("professor") or "Admin",
            "professorTitle": form.get("professorTitle") or "Administrator",
            "timestamp": SERVER_TIMESTAMP,
            "createdAt": SERVER_TIMESTAMP,
        }
        message_id = self.store.add(self.COLLECTION, doc)
        logger.info("Community message saved with id %s", message_id)
        return message_id

    def list_messages(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        rows = self.store.query(self.COLLECTION, order_by="timestamp", descending=True, limit=limit or None)
        return [
            {
                "id": row["id"],
                "professor": row.get("professor") or "Admin",
                "professorTitle": row.get("professorTitle") or "Administrator",
                "messageTitle": row.get("title") or "",
                "message": row.get("message") or "",
                "subheading": row.get("subheading") or "",
                "link": row.get("link") or "",
                "imageUrls": row.get("imageUrls") or [],
                "timestamp": row.get("timestamp"),
                "createdAt": row.get("createdAt"),
            }
            for row in rows
        ]

    @_logged("deleting community message")
    def delete(self, message_id: str) -> None:
        self.store.delete(self.COLLECTION, message_id)


class DailyTradingRepository:
    """Per-user daily P&L entries, one document per date."""

    SUBCOLLECTION = "dailyTrading"

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _collection(self, user_id: str) -> str:
        # entries hang off whichever account collection holds the user
        parent = UserRepository.COLLECTION
        if not self.store.exists(parent, user_id) and self.store.exists(
            LearningUserRepository.COLLECTION, user_id
        ):
            parent = LearningUserRepository.COLLECTION
        return f"{parent}/{user_id}/{self.SUBCOLLECTION}"

    @_logged("saving daily trading data")
    def save(self, user_id: str, form: Dict[str, Any]) -> str:
        """Create or overwrite the entry for ``form['date']``; returns its id."""
        collection = self._collection(user_id)
        data = {
            "date": form.get("date"),
            "pnl": _to_float(form.get("pnl")),
            "tradesCount": _to_int(form.get("tradesCount")),
            "description": form.get("description") or "",
            "entry": form.get("entry") or "",
            "exit": form.get("exit") or "",
            "profit": _to_float(form.get("profit")),
            "updatedAt": SERVER_TIMESTAMP,
        }
        existing = _first(self.store.query(collection, where=[("date", data["date"])], limit=1))
        if existing:
            self.store.update(collection, existing["id"], data)
            logger.info("Daily trading data updated for %s", data["date"])
            return existing["id"]

        data["createdAt"] = SERVER_TIMESTAMP
        entry_id = self.store.add(collection, data)
        logger.info("Daily trading data saved for %s", data["date"])
        return entry_id

    def get_by_date(self, user_id: str, day: str) -> Optional[Dict[str, Any]]:
        return _first(self.store.query(self._collection(user_id), where=[("date", day)], limit=1))

    def list_month(self, user_id: str, year: int, month: int) -> List[Dict[str, Any]]:
        prefix = f"{int(year):04d}-{int(month):02d}-"
        rows = self.store.query(self._collection(user_id), order_by="date")
        return [row for row in rows if str(row.get("date") or "").startswith(prefix)]

    def list_all(self, user_id: str) -> List[Dict[str, Any]]:
        return self.store.query(self._collection(user_id), order_by="date", descending=True)

    @_logged("deleting daily trading data")
    def delete(self, user_id: str, entry_id: str) -> None:
        self.store.delete(self._collection(user_id), entry_id)
