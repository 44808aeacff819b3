#!/usr/bin/env python
"""
Database initialization script for the toggle registry.

Creates the ``feature_toggles`` table. With ``--drop`` the table is dropped
first, which deletes every toggle.
"""

import argparse
import os
import sys

# Add the src directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from sqlalchemy.exc import SQLAlchemyError

from database.database import build_engine, wait_for_database
from models import Base
from utils.config import get_settings


def drop_tables(engine):
    """Drop all tables defined in the models."""
    print("Dropping feature toggle tables...")
    Base.metadata.drop_all(engine)
    print("Tables dropped successfully.")


def create_tables(engine):
    """Create all tables defined in the models."""
    print(f"Tables to be created: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(engine)
    print("Tables created successfully.")


def main(argv=None):
    """Main function to initialize the database."""
    parser = argparse.ArgumentParser(description="Create the feature toggle schema")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)

    settings = get_settings()
    engine = build_engine(settings)

    try:
        wait_for_database(engine, settings.db_connect_retries, settings.db_connect_retry_delay)
        print("Database connection successful.")

        if args.drop:
            drop_tables(engine)
        create_tables(engine)
        print("Database initialization completed successfully.")
    except SQLAlchemyError as e:
        print(f"Error initializing database: {str(e)}")
        sys.exit(1)
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
