#!/usr/bin/env python3
"""
Database initialization script for Docker.
Creates the jobs table if it doesn't exist.
"""

import sys
from sqlalchemy.exc import SQLAlchemyError
from database import init_db


def init_database():
    """Initialize the database by creating all tables."""
    try:
        print("Creating database tables...")
        init_db()
        print("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        print(f"❌ Error creating database tables: {e}")
        sys.exit(1)


if __name__ == "__main__":
    init_database()
