import logging

from flask import Flask, jsonify
from config import Config
from routes import health_bp, slots_bp, booking_bp, working_hours_bp, audit_bp

from models import db
from flask_migrate import Migrate
from scheduling.booking import booking_policy
from scheduling.errors import SchedulingError
from utils.seed import seed_default_location


def create_app(config_object=Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(slots_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(working_hours_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    with app.app_context():
        # Fail at startup, not on the first booking, if the booking policy is misconfigured
        booking_policy()
        # Seed the single-tenant default location (safe & idempotent)
        seed_default_location()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(err):
        if err.http_status >= 500:
            app.logger.error("%s: %s", err.code, err.message)
        return jsonify(err.to_dict()), err.http_status

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from scheduling.provisioning import provision
from scheduling.working_hours import DaySchedule
from utils.parsing import parse_date, parse_time, parse_optional_time

def register_cli(app):
    @app.cli.command("provision-slots")
    @click.option("--location", "location_id", type=int, default=None, help="Location id (default: DEFAULT_LOCATION_ID)")
    @click.option("--start", "start_date", required=True, help="First day, YYYY-MM-DD")
    @click.option("--end", "end_date", required=True, help="Last day, YYYY-MM-DD")
    @click.option("--open", "open_time", default=None, help="Override: opening time HH:MM")
    @click.option("--close", "close_time", default=None, help="Override: closing time HH:MM")
    @click.option("--duration", type=int, default=None, help="Override: slot duration in minutes")
    @click.option("--break-start", default=None, help="Override: break start HH:MM")
    @click.option("--break-end", default=None, help="Override: break end HH:MM")
    def provision_slots(location_id, start_date, end_date, open_time, close_time, duration, break_start, break_end):
        """Create missing slots for a date range (existing slots are left as they are)."""
        if location_id is None:
            location_id = app.config.get("DEFAULT_LOCATION_ID", 1)

        override = None
        try:
            start, end = parse_date(start_date), parse_date(end_date)
            if open_time or close_time or duration:
                if not (open_time and close_time and duration):
                    raise click.UsageError("--open, --close and --duration must be given together")
                override = DaySchedule(
                    open_time=parse_time(open_time),
                    close_time=parse_time(close_time),
                    slot_duration_minutes=duration,
                    break_start=parse_optional_time(break_start),
                    break_end=parse_optional_time(break_end),
                )
        except ValueError as exc:
            raise click.BadParameter(str(exc))

        try:
            result = provision(location_id, start, end, schedule_override=override)
        except SchedulingError as exc:
            raise click.ClickException(f"{exc.code}: {exc.message}")

        click.echo(f"{result.days} day(s): {result.slots_created} slot(s) created, {result.slots_existing} already present")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
