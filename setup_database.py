#!/usr/bin/env python3
"""
Database setup script for the European Soccer season pipeline.
Creates an empty DuckDB database with the source schema so raw data can be loaded.
"""

import argparse
import os

import duckdb

from eurosoccer.config import config
from eurosoccer.table_schemas import (
    create_all_source_tables,
    create_indexes_for_source_tables
)


class SoccerDatabaseSetup:
    """Setup and initialize DuckDB database with the source schema"""

    def __init__(self, db_file=str(config.db_file)):
        self.db_file = db_file
        self.conn = None

    def connect(self):
        """Connect to DuckDB"""
        print(f"Connecting to database: {self.db_file}")
        self.conn = duckdb.connect(self.db_file)

    def setup_database(self):
        """Complete database setup process"""
        print("🏗️  Setting up European Soccer Database")
        print("=" * 50)

        self.connect()

        create_all_source_tables(self.conn)
        create_indexes_for_source_tables(self.conn)

        print("\n🎉 Database setup complete!")
        print(f"📁 Database file: {self.db_file}")

        return self.conn

    def show_database_info(self):
        """Display database information"""
        print("\n📋 Database Information")
        print("=" * 30)

        tables = self.conn.execute("SHOW TABLES").fetchall()
        print(f"📊 Tables: {len(tables)}")
        for table in tables:
            print(f"  - {table[0]}")

        if os.path.exists(self.db_file):
            size_mb = os.path.getsize(self.db_file) / (1024 * 1024)
            print(f"\n💾 Database file: {self.db_file}")
            print(f"📏 Size: {size_mb:.2f} MB")

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            print("🔒 Database connection closed")


def main():
    """Main setup function"""
    parser = argparse.ArgumentParser(description="Create the European Soccer source schema")
    parser.add_argument(
        "--db-path",
        type=str,
        default=str(config.db_file),
        help=f"Path to DuckDB database (default: {config.db_file})",
    )
    args = parser.parse_args()

    db_setup = SoccerDatabaseSetup(args.db_path)

    try:
        db_setup.setup_database()
        db_setup.show_database_info()

    except Exception as e:
        print(f"❌ Database setup failed: {e}")
        raise
    finally:
        db_setup.close()


if __name__ == "__main__":
    main()
