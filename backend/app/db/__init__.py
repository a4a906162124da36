from app.db.session import AsyncSessionLocal, get_db
from app.db.session_sync import SessionLocal, get_session

__all__ = ["AsyncSessionLocal", "get_db", "SessionLocal", "get_session"]
