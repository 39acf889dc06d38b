from __future__ import annotations

import logging

from telegram.ext import Application, ApplicationBuilder

from .config import load_config
from .handlers import events as events_handlers
from .handlers import organizer as organizer_handlers
from .handlers import profile as profile_handlers
from .handlers import start as start_handlers
from .logging_config import setup_logging
from .services.session import SessionFactory
from .storage.backend import SqliteBackend
from .storage.db import Database
from .storage.seed import seed_demo_catalog
from .utils.errors import PermissionDenied

logger = logging.getLogger(__name__)


async def on_startup(app: Application):
    logger.info("Bootstrapping bot...")
    config = app.bot_data["config"]
    db: Database = app.bot_data["db"]

    try:
        await db.init_db()
        logger.info("Database initialized at %s", db.path)
    except Exception:
        logger.exception("Failed to initialize database")
        raise

    if config.seed_demo_data:
        try:
            await seed_demo_catalog(app.bot_data["backend"])
        except Exception:
            logger.exception("Failed to seed demo catalog; continuing with existing data")


async def on_shutdown(app: Application):
    db: Database = app.bot_data.get("db")
    if db:
        await db.close()
        logger.info("Database connection closed")
    logger.info("Bot shutdown complete")


async def on_error(update, context):
    err = context.error
    chat_id = getattr(getattr(update, "effective_chat", None), "id", None)
    if isinstance(err, PermissionDenied):
        logger.warning("Permission denied (chat_id=%s): %s", chat_id, err)
    else:
        logger.exception("Handler error (chat_id=%s): %s", chat_id, err, exc_info=err)
    if update and getattr(update, "effective_message", None):
        try:
            if isinstance(err, PermissionDenied):
                await update.effective_message.reply_text("⛔ You are not allowed to do that.")
            else:
                await update.effective_message.reply_text(
                    "⚠️ Something went wrong. The error has been logged; please try again."
                )
        except Exception:
            logger.exception("Failed to send error message to chat_id=%s", chat_id)


def build_application() -> Application:
    config = load_config()
    setup_logging(config)
    db = Database(config.database_path)
    backend = SqliteBackend(db)
    session_factory = SessionFactory(backend=backend, config=config)

    app = (
        ApplicationBuilder()
        .token(config.bot_token)
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )

    app.bot_data["config"] = config
    app.bot_data["db"] = db
    app.bot_data["backend"] = backend
    app.bot_data["session_factory"] = session_factory

    start_handlers.setup_handlers(app)
    events_handlers.setup_handlers(app)
    profile_handlers.setup_handlers(app)
    organizer_handlers.setup_handlers(app)
    app.add_error_handler(on_error)
    logger.info(
        "Bot initialized (log_level=%s, db=%s, latency=%.2fs, seed=%s)",
        config.log_level,
        config.database_path,
        config.simulated_latency,
        config.seed_demo_data,
    )
    return app


def main():
    application = build_application()
    logger.info("Starting polling...")
    application.run_polling()


if __name__ == "__main__":
    main()
