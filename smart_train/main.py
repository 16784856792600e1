import os
import click
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from .config import CONFIGS
from .extensions import db, migrate, jwt, ma, cors, bcrypt


def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=False)
    env = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIGS.get(env, CONFIGS["development"]))

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "OPTIONS"],
    )
    bcrypt.init_app(app)

    # models must be imported before migrations / create_all see the metadata
    from smart_train import models  # noqa: F401

    # register blueprints
    from smart_train.routes.auth_routes import bp as auth_bp
    from smart_train.routes.ticket_routes import bp as ticket_bp
    from smart_train.routes.wallet_routes import bp as wallet_bp
    from smart_train.routes.trip_routes import bp as trip_bp
    from smart_train.routes.payment_routes import bp as payment_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(ticket_bp)
    app.register_blueprint(wallet_bp)
    app.register_blueprint(trip_bp)
    app.register_blueprint(payment_bp)

    register_error_handlers(app)
    register_commands(app)

    if app.config.get("SCHEDULER_ENABLED"):
        start_release_job(app)

    return app


def register_error_handlers(app):
    from smart_train.utils.exceptions import ServiceError, StorageError
    from smart_train.utils.response_formatter import error_response, service_error_response

    @app.errorhandler(ServiceError)
    def service_error(e):
        return service_error_response(e)

    @app.errorhandler(SQLAlchemyError)
    def storage_error(e):
        db.session.rollback()
        app.logger.exception("Unhandled storage error")
        return service_error_response(StorageError())

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", str(e), status=400)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("METHOD_NOT_ALLOWED", "Method not allowed", status=405)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("UNAUTHORIZED", "Unauthorized", status=401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response("INVALID_TOKEN", "Invalid token", status=401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("INVALID_TOKEN", "Token has expired", status=401)


def register_commands(app):
    @app.cli.command("release-sweep")
    def release_sweep_command():
        """Run one escrow release sweep now."""
        from smart_train.services.escrow_service import release_sweep

        summary = release_sweep()
        click.echo(
            f"scanned={summary['scanned']} released={summary['released']} "
            f"skipped={summary['skipped']} failed={summary['failed']}"
        )


def start_release_job(app):
    # the debug reloader imports the app twice; only the serving child schedules
    if app.debug and os.getenv("WERKZEUG_RUN_MAIN") != "true":
        return None

    from smart_train.jobs.release_job import EscrowReleaseJob

    job = EscrowReleaseJob(app)
    job.start()
    app.extensions["escrow_release_job"] = job
    return job


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", 3000)))
