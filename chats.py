"""
Chat history persistence.

Every saved turn is its own document holding exactly the user message and
the assistant reply; history is rebuilt by flattening those documents in
creation order.
"""
from typing import Any, Dict, List

from loguru import logger
from pymongo.errors import PyMongoError

from database import ASCENDING, CHAT, DESCENDING, create_document, get_documents
from errors import InternalError, ValidationError
from schemas import Chat, Message


def save_turn(db, mobile: str, user_message: Message, ai_message: Message) -> str:
    if not mobile or user_message is None or ai_message is None:
        raise ValidationError("Missing required fields")

    entry = Chat(mobile=mobile, messages=[user_message, ai_message])
    try:
        chat_id = create_document(db, CHAT, entry)
    except PyMongoError as exc:
        logger.exception("Error saving chat for {}", mobile)
        raise InternalError("Failed to save chat") from exc
    logger.info("Chat saved successfully with ID: {}", chat_id)
    return chat_id


def history(db, mobile: str) -> List[Dict[str, Any]]:
    try:
        sessions = get_documents(db, CHAT, {"mobile": mobile}, sort=[("createdAt", ASCENDING)])
    except PyMongoError as exc:
        logger.exception("Error fetching chat history for {}", mobile)
        raise InternalError("Failed to fetch chat history") from exc

    messages: List[Dict[str, Any]] = []
    for session in sessions:
        messages.extend(session.get("messages") or [])
    return messages


def delete_history(db, mobile: str) -> int:
    try:
        result = db[CHAT].delete_many({"mobile": mobile})
    except PyMongoError as exc:
        logger.exception("Error deleting chat history for {}", mobile)
        raise InternalError("Failed to delete chat history") from exc
    logger.info("Deleted {} chat session(s) for {}", result.deleted_count, mobile)
    return result.deleted_count


def list_all(db) -> List[Dict[str, Any]]:
    try:
        return get_documents(db, CHAT, sort=[("createdAt", DESCENDING)])
    except PyMongoError as exc:
        logger.exception("Error fetching all chats")
        raise InternalError("Failed to fetch chats") from exc
