from typing import Any, Dict, Optional

from loguru import logger
from pymongo.errors import PyMongoError

from database import USER, create_document, serialize
from errors import InternalError, NotFoundError
from schemas import User


def register(db, user: User) -> str:
    try:
        user_id = create_document(db, USER, user)
    except PyMongoError as exc:
        logger.exception("Error registering account")
        raise InternalError("Server error") from exc
    logger.info("Registered account {}", user_id)
    return user_id


def login(db, mobile: Optional[str], password: Optional[str]) -> bool:
    """Plain-text match on mobile + password. No token is issued."""
    if not mobile or not password:
        return False
    try:
        found = db[USER].find_one({"mobile": mobile, "password": password})
    except PyMongoError as exc:
        logger.exception("Error checking credentials")
        raise InternalError("Server error") from exc
    return found is not None


def get_by_mobile(db, mobile: Optional[str]) -> Dict[str, Any]:
    if not mobile:
        raise NotFoundError("User not found")
    try:
        doc = db[USER].find_one({"mobile": mobile})
    except PyMongoError as exc:
        logger.exception("Error fetching account {}", mobile)
        raise InternalError("Server error") from exc
    if not doc:
        raise NotFoundError("User not found")
    return serialize(doc)
