#!/usr/bin/env python3
"""
Database initialization script.
Creates the jobs table if it doesn't exist.
"""

import sys
from database import engine, Base
import models  # noqa: F401  registers Job on Base.metadata

def init_database():
    """Initialize the database by creating all tables."""
    try:
        print("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        print("✅ Database tables created successfully!")
    except Exception as e:
        print(f"❌ Error creating database tables: {e}")
        sys.exit(1)

if __name__ == "__main__":
    init_database()
