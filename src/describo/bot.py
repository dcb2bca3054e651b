"""Telegram front end of the game."""
import html
import logging
from typing import List, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest, TelegramError
from telegram.ext import Application, CallbackContext

from describo.config import settings
from describo.errors import LoadFailure, PoolExhausted
from describo.models.base import SessionLocal
from describo.models.game_models import Role, TimerStatus
from describo.services.game_service import GameSession
from describo.services.storage_service import KeyValueStore
from describo.services.word_repository import WordRepository

# Get logger for this module
logger = logging.getLogger(__name__)

# Screens
SCREEN_GAME = "game"
SCREEN_OTHER = "other"

# Button texts
NEW_WORD = "🎲 New"
PREV_WORD = "⬅️ Prev"
NEXT_WORD = "➡️ Next"
MARK_SOLVED = "✅ Solved"
UNDO_LAST = "↩️ Undo"
UNDO_ALL = "🗑 Undo all"
TIMER_START = "▶️ Start"
TIMER_PAUSE = "⏸ Pause"
TIMER_RESUME = "⏯ Resume"
TIMER_RESET = "⏹ Reset"
SIMPLE_WORDS = "📖 Simple words"
SETTINGS = "⚙️ Settings"
CATEGORIES = "🗂 Categories"
LANGUAGE = "🌐 Language"
TIMER = "⏱ Timer"
GAME = "🎭 Game"
BE_NARRATOR = "🗣 I'm narrating"
BE_GUESSER = "🙈 I'm guessing"

TIMER_MINUTE_CHOICES = [1, 2, 3, 5]

MSG_NO_WORDS_LEFT = "No words left!"
MSG_TIME_UP = "⏰ Time's up!"
MSG_LOAD_FAILED = "Could not load the word lists, please try again."


def msg_back_to(text: str) -> str: return f"🔙 {text}"


KB_BTN_BACK_TO_GAME = InlineKeyboardButton(msg_back_to(GAME), callback_data="back_to_game")
KB_BTN_BACK_TO_SETTINGS = InlineKeyboardButton(msg_back_to(SETTINGS), callback_data="settings")


def open_store(chat_id: int) -> KeyValueStore:
    """Open the durable store of a chat."""
    return KeyValueStore(SessionLocal, namespace=f"chat:{chat_id}")


def get_repository(application: Application) -> WordRepository:
    """Get the word repository shared by all chats."""
    repository = application.bot_data.get("repository")
    if repository is None:
        repository = WordRepository(settings.paths.words_dir)
        application.bot_data["repository"] = repository
    return repository


async def get_game(update: Update, context: CallbackContext) -> GameSession:
    """Get the game of the current chat, creating it on first use."""
    chat_data = context.chat_data
    game = chat_data.get("game")
    if game is not None:
        return game

    application = context.application
    chat_id = update.effective_chat.id

    def on_timer_update(display: str) -> None:
        if chat_data.get("screen") == SCREEN_GAME and chat_data.get("panel_message_id"):
            application.create_task(refresh_panel(application, chat_id, chat_data))

    def on_timer_expired() -> None:
        application.create_task(send_time_up(application, chat_id))

    game = GameSession(
        repository=get_repository(application),
        store=open_store(chat_id),
        on_timer_update=on_timer_update,
        on_timer_expired=on_timer_expired,
    )
    await game.start()
    chat_data["game"] = game
    logger.info(f"Created game session for chat {chat_id}")
    return game


async def close_games(application: Application) -> None:
    """Stop the timers of every chat."""
    for chat_data in application.chat_data.values():
        game = chat_data.pop("game", None)
        if game is not None:
            await game.close()


async def log_received(update: Update, context_type: str) -> None:
    """Log message."""
    txt = ""
    if update.callback_query:
        txt = f" {update.callback_query.data}"
    elif update.message and context_type != "start":
        txt = f" {update.message.text}"
    user = update.effective_user
    logger.info(f"Received @{context_type:8} from user {user.username} ({user.id}){txt}")


async def send_popup_message(update: Update, text: str) -> None:
    """Show an alert-style popup, or a plain reply outside of button presses."""
    if update.callback_query:
        await update.callback_query.answer(text=text, show_alert=True)
    else:
        await update.message.reply_text(f"⚠️ {text}")


async def send_time_up(application: Application, chat_id: int) -> None:
    """Tell the chat the round is over."""
    try:
        await application.bot.send_message(chat_id=chat_id, text=MSG_TIME_UP)
    except TelegramError as e:
        logger.error(f"Failed to send time-up message to chat {chat_id}: {e}")


# ---- Rendering ----
async def render_game_panel(game: GameSession) -> Tuple[str, InlineKeyboardMarkup]:
    """Build the main game message for the current role."""
    if not game.is_narrator:
        text = (
            "🙈 <b>Guesser</b>\n\n"
            "Listen to the narrator and guess the word.\n"
            "Open the simple words panel to follow along."
        )
        keyboard = [
            [InlineKeyboardButton(SIMPLE_WORDS, callback_data="simple_words")],
            [InlineKeyboardButton(BE_NARRATOR, callback_data="role_narrator")],
        ]
        return text, InlineKeyboardMarkup(keyboard)

    lines = ["🗣 <b>Narrator</b>", ""]
    display = await game.current_display()
    if display is None:
        lines.append("Press <b>New</b> to get a word.")
    else:
        lines.append(f"Word: <b>{html.escape(display.text)}</b>")
        if display.translation:
            lines.append(f"<i>{html.escape(display.translation)}</i>")

    if game.settings.timer_enabled and game.timer.display():
        lines.append(f"⏱ {game.timer.display()}")

    counts = await game.counts()
    lines.append("")
    lines.append(f"Words left: {counts.available}/{counts.total}")

    keyboard = [
        [
            InlineKeyboardButton(PREV_WORD, callback_data="prev_word"),
            InlineKeyboardButton(NEW_WORD, callback_data="new_word"),
            InlineKeyboardButton(NEXT_WORD, callback_data="next_word"),
        ],
        [
            InlineKeyboardButton(MARK_SOLVED, callback_data="mark_solved"),
            InlineKeyboardButton(UNDO_LAST, callback_data="undo_last"),
            InlineKeyboardButton(UNDO_ALL, callback_data="undo_all"),
        ],
    ]
    if game.settings.timer_enabled:
        if game.timer.status is TimerStatus.PAUSED:
            pause_button = InlineKeyboardButton(TIMER_RESUME, callback_data="timer_resume")
        else:
            pause_button = InlineKeyboardButton(TIMER_PAUSE, callback_data="timer_pause")
        keyboard.append([
            InlineKeyboardButton(TIMER_START, callback_data="timer_start"),
            pause_button,
            InlineKeyboardButton(TIMER_RESET, callback_data="timer_reset"),
        ])
    keyboard.append([
        InlineKeyboardButton(SIMPLE_WORDS, callback_data="simple_words"),
        InlineKeyboardButton(SETTINGS, callback_data="settings"),
    ])
    keyboard.append([InlineKeyboardButton(BE_GUESSER, callback_data="role_guesser")])

    return "\n".join(lines), InlineKeyboardMarkup(keyboard)


async def refresh_panel(application: Application, chat_id: int, chat_data: dict) -> None:
    """Redraw the game message in place, e.g. on a timer tick."""
    game = chat_data.get("game")
    message_id = chat_data.get("panel_message_id")
    if game is None or message_id is None:
        return

    text, reply_markup = await render_game_panel(game)
    try:
        await application.bot.edit_message_text(
            text,
            chat_id=chat_id,
            message_id=message_id,
            reply_markup=reply_markup,
            parse_mode="HTML",
        )
    except BadRequest as e:
        if "not modified" not in str(e).lower():
            logger.error(f"Failed to refresh panel in chat {chat_id}: {e}")
    except TelegramError as e:
        logger.error(f"Failed to refresh panel in chat {chat_id}: {e}")


async def show_game(update: Update, context: CallbackContext) -> None:
    """Show the game panel, editing the pressed message when possible."""
    game = await get_game(update, context)
    text, reply_markup = await render_game_panel(game)

    if update.callback_query:
        message = update.callback_query.message
        try:
            await update.callback_query.edit_message_text(text, reply_markup=reply_markup, parse_mode="HTML")
        except BadRequest as e:
            if "not modified" not in str(e).lower():
                raise
    else:
        message = await update.message.reply_text(text, reply_markup=reply_markup, parse_mode="HTML")

    context.chat_data["screen"] = SCREEN_GAME
    if message is not None:
        context.chat_data["panel_message_id"] = message.message_id


async def show_other(update: Update, context: CallbackContext, text: str, keyboard: List[List[InlineKeyboardButton]]) -> None:
    """Show a menu screen in place of the game panel."""
    context.chat_data["screen"] = SCREEN_OTHER
    await update.callback_query.edit_message_text(
        text, reply_markup=InlineKeyboardMarkup(keyboard), parse_mode="HTML"
    )


# ---- Commands ----
async def handle_start(update: Update, context: CallbackContext) -> None:
    """Start the game and show the panel."""
    await log_received(update, "start")
    await show_game(update, context)


async def handle_simple_words_command(update: Update, context: CallbackContext) -> None:
    """Send the simple words panel as a new message."""
    await log_received(update, "simple")
    game = await get_game(update, context)
    try:
        text = await render_simple_words(game)
    except LoadFailure as e:
        logger.warning(f"Simple words unavailable: {e}")
        await update.message.reply_text(MSG_LOAD_FAILED)
        return
    await update.message.reply_text(text, parse_mode="HTML")


# ---- Callbacks ----
async def handle_callback(update: Update, context: CallbackContext) -> None:
    """Handle callback queries from inline keyboard."""
    query = update.callback_query
    await log_received(update, "callback")

    data = query.data
    if data in ("new_word", "mark_solved"):
        return await handle_pick(update, context)
    elif data in ("prev_word", "next_word", "undo_last", "undo_all"):
        return await handle_navigation(update, context)
    elif data.startswith("timer_"):
        return await handle_timer(update, context)
    elif data.startswith("role_"):
        return await handle_role(update, context)
    elif data == "back_to_game":
        await query.answer()
        return await show_game(update, context)
    elif data == "simple_words":
        return await show_simple_words(update, context)
    elif data == "settings":
        return await show_settings(update, context)
    elif data == "categories" or data.startswith("toggle_category_"):
        return await handle_categories(update, context)
    elif data == "language" or data.startswith(("set_language_", "set_second_language_")) or data == "second_language_toggle":
        return await handle_language(update, context)
    elif data == "settings_timer" or data.startswith("set_timer_minutes_") or data == "settings_timer_toggle":
        return await handle_timer_settings(update, context)

    await query.answer()


async def handle_pick(update: Update, context: CallbackContext) -> None:
    """Pick a new word, optionally retiring the current one first."""
    game = await get_game(update, context)
    try:
        if update.callback_query.data == "mark_solved":
            entry = await game.mark_solved()
            if entry is None:
                await update.callback_query.answer("No word to mark yet")
                return
        else:
            await game.new_word()
    except PoolExhausted:
        await send_popup_message(update, MSG_NO_WORDS_LEFT)
        await show_game(update, context)
        return

    await update.callback_query.answer()
    await show_game(update, context)


async def handle_navigation(update: Update, context: CallbackContext) -> None:
    """Move through the history or undo solved words."""
    query = update.callback_query
    game = await get_game(update, context)

    if query.data == "prev_word":
        game.prev_word()
        await query.answer()
    elif query.data == "next_word":
        game.next_word()
        await query.answer()
    elif query.data == "undo_last":
        identity = game.undo_last()
        await query.answer("Brought back the last solved word" if identity else "Nothing to undo")
    elif query.data == "undo_all":
        count = game.undo_all()
        await query.answer(f"Brought back {count} solved words")

    await show_game(update, context)


async def handle_timer(update: Update, context: CallbackContext) -> None:
    """Start, pause, resume or reset the round timer."""
    query = update.callback_query
    game = await get_game(update, context)

    action = query.data.removeprefix("timer_")
    if action == "start":
        game.start_timer()
    elif action == "pause":
        game.pause_timer()
    elif action == "resume":
        game.resume_timer()
    elif action == "reset":
        game.reset_timer()

    await query.answer()
    await show_game(update, context)


async def handle_role(update: Update, context: CallbackContext) -> None:
    """Switch between narrator and guesser."""
    query = update.callback_query
    game = await get_game(update, context)
    game.set_role(Role(query.data.removeprefix("role_")))
    await query.answer()
    await show_game(update, context)


async def render_simple_words(game: GameSession) -> str:
    """Format the simple words grid, one group per paragraph."""
    groups = await game.simple_words()
    paragraphs = []
    for group in groups:
        chips = []
        for word in group:
            chip = f"<b>{html.escape(word.text)}</b>"
            if word.translation:
                chip += f" ({html.escape(word.translation)})"
            chips.append(chip)
        paragraphs.append(" · ".join(chips))
    return "📖 <b>Simple words</b>\n\n" + "\n\n".join(paragraphs)


async def show_simple_words(update: Update, context: CallbackContext) -> None:
    """Show the simple words panel."""
    game = await get_game(update, context)
    try:
        text = await render_simple_words(game)
    except LoadFailure as e:
        logger.warning(f"Simple words unavailable: {e}")
        await send_popup_message(update, MSG_LOAD_FAILED)
        return

    await update.callback_query.answer()
    await show_other(update, context, text, [[KB_BTN_BACK_TO_GAME]])


async def show_settings(update: Update, context: CallbackContext) -> None:
    """Show settings menu."""
    await update.callback_query.answer()
    keyboard = [
        [InlineKeyboardButton(CATEGORIES, callback_data="categories")],
        [InlineKeyboardButton(LANGUAGE, callback_data="language")],
        [InlineKeyboardButton(TIMER, callback_data="settings_timer")],
        [KB_BTN_BACK_TO_GAME],
    ]
    await show_other(update, context, "⚙️ Settings\n\nWhat would you like to change?", keyboard)


async def handle_categories(update: Update, context: CallbackContext) -> None:
    """Show the categories with their counts and toggle them."""
    query = update.callback_query
    game = await get_game(update, context)

    if query.data.startswith("toggle_category_"):
        category_id = query.data.removeprefix("toggle_category_")
        try:
            game.toggle_category(category_id)
        except ValueError as e:
            logger.warning(f"Ignoring toggle: {e}")
    await query.answer()

    counts = await game.counts()
    keyboard = []
    for category in game.categories:
        mark = "✅" if category.id in game.settings.enabled_categories else "⬜"
        available, total = counts.per_category.get(category.id, (0, 0))
        keyboard.append([InlineKeyboardButton(
            f"{mark} {category.label} ({available}/{total})",
            callback_data=f"toggle_category_{category.id}",
        )])
    keyboard.append([KB_BTN_BACK_TO_SETTINGS, KB_BTN_BACK_TO_GAME])

    text = f"🗂 Categories\n\nWords left in selected categories: {counts.available}/{counts.total}"
    await show_other(update, context, text, keyboard)


async def handle_language(update: Update, context: CallbackContext) -> None:
    """Choose the word language and the optional second language."""
    query = update.callback_query
    game = await get_game(update, context)

    try:
        if query.data.startswith("set_language_"):
            game.set_language(query.data.removeprefix("set_language_"))
        elif query.data.startswith("set_second_language_"):
            game.set_second_language(query.data.removeprefix("set_second_language_"))
        elif query.data == "second_language_toggle":
            game.set_second_language_enabled(not game.settings.second_language_enabled)
    except ValueError as e:
        logger.warning(f"Ignoring language change: {e}")
    await query.answer()

    languages = game.defaults.languages
    current = game.settings

    def label(lang: str, selected: bool) -> str:
        return f"• {lang} •" if selected else lang

    keyboard = [
        [InlineKeyboardButton(label(lang, lang == current.language), callback_data=f"set_language_{lang}")
         for lang in languages],
        [InlineKeyboardButton(
            ("✅" if current.second_language_enabled else "⬜") + " Show translation",
            callback_data="second_language_toggle",
        )],
    ]
    if current.second_language_enabled:
        keyboard.append([
            InlineKeyboardButton(label(lang, lang == current.second_language), callback_data=f"set_second_language_{lang}")
            for lang in languages
        ])
    keyboard.append([KB_BTN_BACK_TO_SETTINGS, KB_BTN_BACK_TO_GAME])

    text = f"🌐 Language\n\nWords: {current.language}"
    if current.second_language_enabled:
        text += f"\nTranslation: {current.second_language}"
    await show_other(update, context, text, keyboard)


async def handle_timer_settings(update: Update, context: CallbackContext) -> None:
    """Turn the timer on or off and set its length."""
    query = update.callback_query
    game = await get_game(update, context)

    if query.data == "settings_timer_toggle":
        game.set_timer_enabled(not game.settings.timer_enabled)
    elif query.data.startswith("set_timer_minutes_"):
        try:
            game.set_timer_minutes(int(query.data.removeprefix("set_timer_minutes_")))
        except ValueError as e:
            logger.warning(f"Ignoring timer length: {e}")
    await query.answer()

    current = game.settings
    keyboard = [
        [InlineKeyboardButton(
            ("✅" if current.timer_enabled else "⬜") + " Use timer",
            callback_data="settings_timer_toggle",
        )],
        [InlineKeyboardButton(
            f"• {minutes} min •" if minutes == current.timer_minutes else f"{minutes} min",
            callback_data=f"set_timer_minutes_{minutes}",
        ) for minutes in TIMER_MINUTE_CHOICES],
        [KB_BTN_BACK_TO_SETTINGS, KB_BTN_BACK_TO_GAME],
    ]
    state = "on" if current.timer_enabled else "off"
    await show_other(update, context, f"⏱ Timer\n\nTimer is {state}, {current.timer_minutes} min per word", keyboard)
