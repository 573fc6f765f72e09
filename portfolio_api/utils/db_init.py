"""
Database auto-initialization utilities
Handles automatic table creation on startup
"""
from sqlalchemy import text, inspect
from flask import current_app
from portfolio_api import db
from portfolio_api import models  # noqa: F401  registers every table on db.metadata


def check_database_connection():
    """Test if database connection is working"""
    try:
        db.session.execute(text('SELECT 1'))
        return True
    except Exception as e:
        current_app.logger.error(f"Database connection failed: {e}")
        return False


def check_tables_exist():
    """Check if every mapped table exists"""
    existing = set(inspect(db.engine).get_table_names())
    return all(name in existing for name in db.metadata.tables)


def create_database_tables():
    """Create all database tables"""
    try:
        current_app.logger.info("Creating database tables...")
        db.create_all()
        current_app.logger.info("Database tables created successfully")
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to create database tables: {e}")
        return False


def auto_initialize_database():
    """
    Auto-initialize database on startup
    - Check database connection
    - Create tables if needed
    """
    current_app.logger.info("Checking database initialization...")

    if not check_database_connection():
        current_app.logger.error("Database connection failed")
        return False

    if not check_tables_exist():
        current_app.logger.info("Missing tables detected - creating database tables...")
        if not create_database_tables():
            return False
    else:
        current_app.logger.info("Database tables exist")

    current_app.logger.info("Database initialization complete - system ready!")
    return True
