from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import CommandHandler, ContextTypes

from ..services.messaging import get_session, send_main_menu

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Welcome to EventHub!\n"
    "Log in with /login <email> <password> or create an account with "
    "/register <name> <email> <password>."
)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    if session.user is None:
        await update.message.reply_text(WELCOME_TEXT)
        return
    await send_main_menu(context, chat_id=update.effective_chat.id, text=f"Welcome back, {session.user.name}!")


async def login(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if len(context.args or []) != 2:
        await update.message.reply_text("Usage: /login <email> <password>")
        return
    email, password = context.args
    auth = get_session(context).auth
    result = await auth.login(email, password)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    await send_main_menu(context, chat_id=update.effective_chat.id, text=f"✅ Logged in as {result.value.name}")


async def register(update: Update, context: ContextTypes.DEFAULT_TYPE):
    args = context.args or []
    if len(args) < 3:
        await update.message.reply_text("Usage: /register <name> <email> <password>")
        return
    name, email, password = " ".join(args[:-2]), args[-2], args[-1]
    auth = get_session(context).auth
    result = await auth.register(name, email, password)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    await send_main_menu(
        context,
        chat_id=update.effective_chat.id,
        text=f"✅ Account created. Welcome, {result.value.name}!",
    )


async def logout(update: Update, context: ContextTypes.DEFAULT_TYPE):
    get_session(context).auth.logout()
    # Enrollment and payment state belongs to the previous user.
    context.user_data.pop("session", None)
    context.user_data.pop("viewed_event", None)
    await update.message.reply_text("👋 Logged out.")


async def reset_password(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if len(context.args or []) != 1:
        await update.message.reply_text("Usage: /reset <email>")
        return
    result = await get_session(context).auth.reset_password(context.args[0])
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    await update.message.reply_text("If the address is registered, reset instructions are on their way.")


def setup_handlers(application):
    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("login", login))
    application.add_handler(CommandHandler("register", register))
    application.add_handler(CommandHandler("logout", logout))
    application.add_handler(CommandHandler("reset", reset_password))
