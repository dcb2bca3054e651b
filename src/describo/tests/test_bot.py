"""Tests for Telegram bot handlers."""
from unittest.mock import AsyncMock, Mock

import pytest
from faker import Faker
from telegram import Update, User as TelegramUser

from describo.bot import (
    MSG_NO_WORDS_LEFT,
    SCREEN_GAME,
    SCREEN_OTHER,
    close_games,
    handle_callback,
    handle_simple_words_command,
    handle_start,
)
from describo.models.game_models import Role
from describo.services.storage_service import InMemoryStore
from describo.services.word_repository import WordRepository

fake = Faker()


@pytest.fixture
def chat_id() -> int:
    return fake.random_int(min=1000, max=999999)


@pytest.fixture(autouse=True)
def memory_store(mocker) -> InMemoryStore:
    """Keep chat state in memory instead of the database."""
    store = InMemoryStore()
    mocker.patch("describo.bot.open_store", return_value=store)
    return store


@pytest.fixture
def telegram_user() -> Mock:
    """Create a mock Telegram user."""
    user = Mock(spec=TelegramUser)
    user.id = fake.random_int()
    user.first_name = fake.first_name()
    user.username = f"test_user_{fake.random_int()}"
    user.is_bot = False
    return user


@pytest.fixture
def update(telegram_user: Mock, chat_id: int) -> Mock:
    """Create a mock Update object for a button press."""
    update = AsyncMock(spec=Update)
    update.effective_user = telegram_user
    update.effective_chat = Mock(id=chat_id)
    update.message = AsyncMock()
    update.message.reply_text = AsyncMock(return_value=Mock(message_id=7))
    update.callback_query = AsyncMock()
    update.callback_query.answer = AsyncMock()
    update.callback_query.edit_message_text = AsyncMock()
    update.callback_query.message = Mock(message_id=42)
    return update


@pytest.fixture
def command_update(update: Mock) -> Mock:
    """Create a mock Update object for a command."""
    update.callback_query = None
    update.message.text = "/start"
    return update


@pytest.fixture
def context(repository: WordRepository, chat_id: int) -> Mock:
    """Create a mock callback context with its own chat data."""
    chat_data = {}
    application = Mock()
    application.bot = AsyncMock()
    application.bot_data = {"repository": repository}
    application.chat_data = {chat_id: chat_data}
    # Drop scheduled coroutines without running them
    application.create_task = Mock(side_effect=lambda coro: coro.close())

    context = Mock()
    context.application = application
    context.chat_data = chat_data
    return context


def press(update: Mock, data: str) -> Mock:
    update.callback_query.data = data
    return update


def edited_text(update: Mock) -> str:
    return update.callback_query.edit_message_text.call_args.args[0]


@pytest.mark.asyncio
async def test_start_shows_narrator_panel(command_update: Mock, context: Mock) -> None:
    await handle_start(command_update, context)

    text = command_update.message.reply_text.call_args.args[0]
    assert "Narrator" in text
    assert "Words left: 6/6" in text
    assert context.chat_data["panel_message_id"] == 7
    assert context.chat_data["screen"] == SCREEN_GAME
    assert context.chat_data["game"].is_narrator


@pytest.mark.asyncio
async def test_new_word_button(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "new_word"), context)

    game = context.chat_data["game"]
    entry = game.current_word()
    assert entry is not None
    assert f"<b>{entry.word.text}</b>" in edited_text(update)
    assert context.chat_data["panel_message_id"] == 42


@pytest.mark.asyncio
async def test_mark_solved_button(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "new_word"), context)
    first = context.chat_data["game"].current_word()

    await handle_callback(press(update, "mark_solved"), context)

    game = context.chat_data["game"]
    assert game.solved_tracker.is_solved(first.word.identity)
    assert "Words left: 5/6" in edited_text(update)


@pytest.mark.asyncio
async def test_mark_solved_without_word(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "mark_solved"), context)

    update.callback_query.answer.assert_called_with("No word to mark yet")


@pytest.mark.asyncio
async def test_no_words_left_popup(update: Mock, context: Mock, memory_store: InMemoryStore) -> None:
    memory_store.set("settings", '{"enabled_categories": []}')

    await handle_callback(press(update, "new_word"), context)

    update.callback_query.answer.assert_any_call(text=MSG_NO_WORDS_LEFT, show_alert=True)
    assert context.chat_data["game"].current_word() is None


@pytest.mark.asyncio
async def test_prev_next_buttons(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "new_word"), context)
    await handle_callback(press(update, "new_word"), context)
    game = context.chat_data["game"]

    await handle_callback(press(update, "prev_word"), context)
    assert game.history.cursor == 0
    await handle_callback(press(update, "next_word"), context)
    assert game.history.cursor == 1


@pytest.mark.asyncio
async def test_undo_buttons(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "undo_last"), context)
    update.callback_query.answer.assert_called_with("Nothing to undo")

    await handle_callback(press(update, "new_word"), context)
    await handle_callback(press(update, "mark_solved"), context)
    await handle_callback(press(update, "undo_all"), context)
    update.callback_query.answer.assert_called_with("Brought back 1 solved words")


@pytest.mark.asyncio
async def test_role_switch(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "role_guesser"), context)

    assert context.chat_data["game"].settings.role is Role.GUESSER
    assert "Guesser" in edited_text(update)

    await handle_callback(press(update, "role_narrator"), context)
    assert context.chat_data["game"].is_narrator


@pytest.mark.asyncio
async def test_toggle_category(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "toggle_category_easy"), context)

    game = context.chat_data["game"]
    assert "easy" not in game.settings.enabled_categories
    assert "Words left in selected categories: 4/4" in edited_text(update)
    assert context.chat_data["screen"] == SCREEN_OTHER

    keyboard = update.callback_query.edit_message_text.call_args.kwargs["reply_markup"].inline_keyboard
    assert keyboard[0][0].text == "⬜ Easy (2/2)"
    assert keyboard[1][0].text == "✅ Medium (2/2)"


@pytest.mark.asyncio
async def test_language_menu(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "set_language_es"), context)
    await handle_callback(press(update, "second_language_toggle"), context)
    await handle_callback(press(update, "set_second_language_ru"), context)

    settings = context.chat_data["game"].settings
    assert settings.language == "es"
    assert settings.second_language_enabled is True
    assert settings.second_language == "ru"
    assert "Translation: ru" in edited_text(update)


@pytest.mark.asyncio
async def test_timer_settings_and_controls(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "settings_timer_toggle"), context)
    await handle_callback(press(update, "set_timer_minutes_2"), context)
    game = context.chat_data["game"]
    assert game.settings.timer_enabled is True
    assert game.settings.timer_minutes == 2

    await handle_callback(press(update, "timer_start"), context)
    assert game.timer.remaining == 120
    assert "⏱ 2:00" in edited_text(update)

    await handle_callback(press(update, "timer_pause"), context)
    assert not game.timer.running
    await handle_callback(press(update, "timer_resume"), context)
    assert game.timer.running
    await handle_callback(press(update, "timer_reset"), context)
    assert game.timer.display() == ""

    await close_games(context.application)
    assert "game" not in context.chat_data


@pytest.mark.asyncio
async def test_timer_expiry_notifies_chat(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "new_word"), context)
    game = context.chat_data["game"]

    game.timer.start(0)

    context.application.create_task.assert_called()


@pytest.mark.asyncio
async def test_simple_words_panel(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "simple_words"), context)

    text = edited_text(update)
    assert "<b>person</b>" in text
    assert context.chat_data["screen"] == SCREEN_OTHER


@pytest.mark.asyncio
async def test_simple_words_command(command_update: Mock, context: Mock) -> None:
    await handle_simple_words_command(command_update, context)

    text = command_update.message.reply_text.call_args.args[0]
    assert "<b>place</b>" in text


@pytest.mark.asyncio
async def test_settings_menu(update: Mock, context: Mock) -> None:
    await handle_callback(press(update, "settings"), context)
    assert "Settings" in edited_text(update)

    await handle_callback(press(update, "back_to_game"), context)
    assert "Narrator" in edited_text(update)
    assert context.chat_data["screen"] == SCREEN_GAME
