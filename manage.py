# manage.py
import sys

from app import create_app
from riseup.database.db_manager import db, ensure_default_tracks

USAGE = "Usage: python manage.py [create_db | seed]"


def create_db():
    """Creates the database tables."""
    app = create_app()
    with app.app_context():
        db.create_all()
        print(f"Database tables created at {app.config['SQLALCHEMY_DATABASE_URI']}")


def seed():
    """Creates the tables and inserts the default catalogue tracks."""
    app = create_app()
    with app.app_context():
        db.create_all()
        created = ensure_default_tracks()
        if created:
            print(f"Seeded {len(created)} default track(s): {', '.join(t.title for t in created)}")
        else:
            print("Default tracks already exist")


COMMANDS = {
    'create_db': create_db,
    'seed': seed,
}


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print(f"No command provided. {USAGE}")
        sys.exit(1)
    command = COMMANDS.get(sys.argv[1])
    if command is None:
        print(f"Unknown command: {sys.argv[1]}")
        print(USAGE)
        sys.exit(1)
    command()
