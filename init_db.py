#!/usr/bin/env python3
"""
Database setup for Escola Gestão

    python init_db.py           create missing tables and the platform super admin
    python init_db.py --reset   drop everything first (asks for confirmation)
    python init_db.py --seed    also load the demo school from sample_data.py
"""

import argparse

from app import create_app
from database import reset_database

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Set up the Escola Gestão database")
    parser.add_argument('--reset', action='store_true', help="drop and recreate all tables")
    parser.add_argument('--seed', action='store_true', help="load the demo school after setup")
    parser.add_argument('--config', default=None, help="configuration name (development, production)")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    # Tables and the super admin are created by the app factory
    app = create_app(args.config)

    if args.reset:
        print("WARNING: This will delete all existing data!")
        if input("Type 'yes' to reset the database: ").lower() != 'yes':
            print("Database reset cancelled.")
            return
        reset_database(app)
        print("Database reset completed.")

    if args.seed:
        from sample_data import create_sample_data
        create_sample_data(app)
        return

    print(f"Database ready at {app.config['SQLALCHEMY_DATABASE_URI']}")

if __name__ == '__main__':
    main()
