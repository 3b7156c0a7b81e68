"""
Database initialization script.
"""
from recycleconnect.core.config import settings
from recycleconnect.db.session import build_engine, init_db

if __name__ == "__main__":
    print(f"Initializing database at {settings.DATABASE_URL}...")
    init_db(build_engine())
    print("Database initialized successfully!")
