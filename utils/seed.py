from flask import current_app
from sqlalchemy import inspect

from models import db
from models.location import Location

def seed_default_location():
    # Tables may not exist yet (fresh checkout before `flask db upgrade`)
    if not inspect(db.engine).has_table(Location.__tablename__):
        return

    location_id = current_app.config.get("DEFAULT_LOCATION_ID", 1)
    if db.session.get(Location, location_id) is None:
        name = current_app.config.get("DEFAULT_LOCATION_NAME", "Main salon")
        db.session.add(Location(id=location_id, name=name))
        db.session.commit()
