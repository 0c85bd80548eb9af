from types import SimpleNamespace

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from dex_tools.data_generator import build_png
from dexsuites.ui_testing.framework import wait_helpers
from dexsuites.ui_testing.framework.wait_helpers import RetryExhaustedError
from dexsuites.ui_testing.pages.content_page import (
    ContentPage,
    FolderDialogState,
    FolderNameRejectedError,
    ViewMode,
    duplicate_folder_name,
    find_forbidden_characters,
)


@pytest.fixture
def content_page(fake_page, settings):
    return ContentPage(fake_page, settings)


@pytest.fixture
def images(tmp_path):
    paths = []
    for name in ("test_imagen_1.png", "test_imagen_2.png", "test-images.png"):
        path = tmp_path / name
        path.write_bytes(build_png(4, 4))
        paths.append(path)
    return paths


def _clicked(fake_page):
    return [description for action, description in fake_page.actions("click")]


# =========================================================================
# Pure helpers
# =========================================================================

def test_find_forbidden_characters_unique_in_order():
    assert find_forbidden_characters('a/b\\c/d:"') == ["/", "\\", ":", '"']
    assert find_forbidden_characters("CONTENIDO DEX MANAGER - 2024-01-01") == []


def test_duplicate_folder_name():
    assert duplicate_folder_name("Carpeta") == "Carpeta(1)"
    assert duplicate_folder_name("Carpeta", 2) == "Carpeta(2)"


def test_rejected_error_lists_characters():
    error = FolderNameRejectedError("a/b*", ["/", "*"])
    assert error.forbidden == ["/", "*"]
    assert "/ *" in str(error)


def test_view_mode_option_rejects_unknown(content_page):
    with pytest.raises(ValueError):
        content_page.view_mode_option(ViewMode.UNKNOWN)
    with pytest.raises(ValueError):
        content_page.view_mode_option("mosaic")


def test_parameterized_locators_are_per_name(content_page):
    first = content_page.item_card("test_imagen_1.png")
    second = content_page.item_card("test_imagen_2.png")

    assert first.description != second.description
    assert 'title="test_imagen_1.png"' in first.description
    assert 'title="say \\"hi\\""' in content_page.item_card('say "hi"').description


# =========================================================================
# Folder creation
# =========================================================================

@pytest.mark.asyncio
async def test_create_folder_flow_and_state(content_page, fake_page):
    assert content_page.folder_dialog_state is FolderDialogState.CLOSED

    await content_page.create_folder("CONTENIDO DEX MANAGER - A1B2")

    assert _clicked(fake_page) == [
        content_page.add_button.description,
        content_page.folder_option.description,
        content_page.accept_button.description,
    ]
    assert ("wait_for", content_page.open_dialog.description) in fake_page.actions()
    assert content_page.folder_dialog_state is FolderDialogState.CLOSED


@pytest.mark.asyncio
async def test_enter_folder_name_stops_before_confirm(content_page, fake_page):
    await content_page.enter_folder_name("Carpeta valida")

    assert content_page.accept_button.description not in _clicked(fake_page)
    assert content_page.folder_dialog_state is FolderDialogState.NAME_ENTERED


@pytest.mark.asyncio
async def test_atomic_steps_move_through_states(content_page):
    await content_page.open_add_menu()
    assert content_page.folder_dialog_state is FolderDialogState.MENU_OPEN

    await content_page.choose_folder_option()
    assert content_page.folder_dialog_state is FolderDialogState.DIALOG_OPEN

    await content_page.type_folder_name("Carpeta")
    assert content_page.folder_dialog_state is FolderDialogState.NAME_ENTERED

    await content_page.cancel_dialog()
    assert content_page.folder_dialog_state is FolderDialogState.CLOSED


@pytest.mark.asyncio
async def test_forbidden_name_rejected_with_disabled_confirm(content_page, fake_page, fake_expect):
    fake_page.disabled.add(content_page.accept_button.description)

    with pytest.raises(FolderNameRejectedError) as exc_info:
        await content_page.create_folder("Carpeta / : *")

    assert exc_info.value.forbidden == ["/", ":", "*"]
    assert content_page.folder_dialog_state is FolderDialogState.ERROR
    assert content_page.accept_button.description not in _clicked(fake_page)
    assert ("expect_disabled", content_page.accept_button.description) in fake_page.actions()


@pytest.mark.asyncio
async def test_forbidden_name_with_enabled_confirm_fails(content_page, fake_page, fake_expect):
    with pytest.raises(AssertionError):
        await content_page.create_folder("Carpeta?")


@pytest.mark.asyncio
async def test_create_folder_dialog_never_closing_times_out(content_page, fake_page):
    fake_page.never_hidden.add(content_page.open_dialog.description)

    with pytest.raises(PlaywrightTimeoutError):
        await content_page.create_folder("Carpeta")

    assert content_page.folder_dialog_state is FolderDialogState.SUBMITTED


@pytest.mark.asyncio
async def test_get_duplicate_folder_name(content_page, fake_page):
    locator = content_page.folder_in_tree("Carpeta(1)")
    fake_page.texts[locator.description] = " Carpeta(1) "

    assert await content_page.get_duplicate_folder_name("Carpeta") == "Carpeta(1)"


# =========================================================================
# Uploads
# =========================================================================

@pytest.mark.asyncio
async def test_upload_single_file(content_page, fake_page, images):
    await content_page.upload_single_file(images[0])

    assert _clicked(fake_page) == [
        content_page.add_button.description,
        content_page.upload_files_button.description,
    ]
    attached = [args[0] for action, _, args in fake_page.calls if action == "set_input_files"]
    assert attached == [[str(images[0])]]
    assert ("wait_for", content_page.file_success_indicator(1).description) in fake_page.actions()


@pytest.mark.asyncio
async def test_upload_multiple_files_waits_for_each_indicator(content_page, fake_page, images):
    await content_page.upload_multiple_files(images)

    waited = [d for action, d in fake_page.actions("wait_for")]
    for position in (1, 2, 3):
        assert content_page.file_success_indicator(position).description in waited


@pytest.mark.asyncio
async def test_upload_multiple_files_fails_when_one_file_never_succeeds(content_page, fake_page, images):
    fake_page.invisible.add(content_page.file_success_indicator(2).description)

    with pytest.raises(PlaywrightTimeoutError):
        await content_page.upload_multiple_files(images[:2])


@pytest.mark.asyncio
async def test_upload_multiple_files_requires_files(content_page):
    with pytest.raises(ValueError):
        await content_page.upload_multiple_files([])


@pytest.mark.asyncio
async def test_drag_and_drop_dispatches_drop_events(content_page, fake_page, images):
    await content_page.upload_by_drag_and_drop(images[:2])

    events = [args[0] for action, _, args in fake_page.calls if action == "dispatch_event"]
    assert events == ["dragenter", "dragover", "drop"]
    payload = next(args[0] for action, _, args in fake_page.calls if action == "evaluate_handle")
    assert [f["name"] for f in payload] == ["test_imagen_1.png", "test_imagen_2.png"]
    assert payload[0]["mime"] == "image/png"


@pytest.mark.asyncio
async def test_drag_and_drop_falls_back_to_input(content_page, fake_page, images):
    fake_page.invisible.add(content_page.drop_zone.description)

    await content_page.upload_by_drag_and_drop(images[:1])

    assert "set_input_files" in [action for action, _ in fake_page.actions()]
    assert "dispatch_event" not in [action for action, _ in fake_page.actions()]


@pytest.mark.asyncio
async def test_wait_for_upload_complete_falls_back_to_backoff(content_page, fake_page, monkeypatch):
    fake_page.invisible.add(content_page.upload_success.description)
    calls = {}

    async def fake_backoff(condition, max_attempts, base_delay, description):
        calls["max_attempts"] = max_attempts
        calls["result"] = await condition()

    monkeypatch.setattr("dexsuites.ui_testing.pages.content_page.wait_with_backoff", fake_backoff)

    await content_page.wait_for_upload_complete(timeout=10)

    assert calls == {"max_attempts": 8, "result": False}


@pytest.mark.asyncio
async def test_wait_for_upload_complete_gives_up(content_page, fake_page, monkeypatch):
    fake_page.invisible.add(content_page.upload_success.description)

    async def no_sleep(delay):
        return None

    monkeypatch.setattr(wait_helpers, "asyncio", SimpleNamespace(sleep=no_sleep))

    with pytest.raises(RetryExhaustedError):
        await content_page.wait_for_upload_complete(timeout=10)


# =========================================================================
# Selection, view modes and toolbar
# =========================================================================

@pytest.mark.asyncio
async def test_select_content_item_hovers_then_clicks(content_page, fake_page):
    await content_page.select_content_item("test_imagen_1.png")

    card = content_page.item_card("test_imagen_1.png").description
    checkbox = content_page.item_checkbox("test_imagen_1.png").description
    assert [entry for entry in fake_page.actions() if entry[0] != "wait_for"] == [
        ("hover", card),
        ("click", checkbox),
    ]


@pytest.mark.asyncio
async def test_are_all_items_checked(content_page, fake_page):
    boxes = content_page.item_checkboxes.description
    assert await content_page.are_all_items_checked() is False

    fake_page.counts[boxes] = 2
    fake_page.checked[f"{boxes}.nth(0)"] = True
    fake_page.checked[f"{boxes}.nth(1)"] = True
    assert await content_page.are_all_items_checked() is True

    fake_page.checked[f"{boxes}.nth(1)"] = False
    assert await content_page.are_all_items_checked() is False


@pytest.mark.asyncio
async def test_select_all_then_none_clicks_menu_options(content_page, fake_page):
    await content_page.select_all_items()
    await content_page.select_none_items()

    menu = content_page.selection_menu_button.description
    assert _clicked(fake_page) == [
        menu,
        content_page.select_all_option.description,
        menu,
        content_page.select_none_option.description,
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [ViewMode.GRID, ViewMode.LIST, ViewMode.CARD])
async def test_active_view_mode_follows_selection(content_page, fake_page, mode):
    for option_mode, option in content_page.view_mode_options.items():
        fake_page.attributes[(option.description, "aria-selected")] = (
            "true" if option_mode is mode else "false"
        )

    await content_page.switch_view_mode(mode)

    assert _clicked(fake_page) == [
        content_page.view_mode_button.description,
        content_page.view_mode_option(mode).description,
    ]
    assert await content_page.get_active_view_mode() is mode


@pytest.mark.asyncio
async def test_active_view_mode_unknown(content_page, fake_page):
    fake_page.invisible.add(content_page.view_mode_option(ViewMode.GRID).description)
    assert await content_page.get_active_view_mode() is ViewMode.UNKNOWN


@pytest.mark.asyncio
async def test_active_view_mode_skips_option_raising_driver_error(content_page, fake_page):
    grid = content_page.view_mode_option(ViewMode.GRID).description
    list_option = content_page.view_mode_option(ViewMode.LIST).description
    fake_page.broken[grid] = "strict mode violation: locator resolved to 2 elements"
    fake_page.attributes[(list_option, "aria-selected")] = "true"

    assert await content_page.get_active_view_mode() is ViewMode.LIST


@pytest.mark.asyncio
async def test_switch_view_helpers(content_page, fake_page):
    await content_page.switch_to_grid_view()
    await content_page.switch_to_list_view()
    await content_page.switch_to_card_view()

    assert _clicked(fake_page) == [
        content_page.view_mode_option(mode).description
        for mode in (ViewMode.GRID, ViewMode.LIST, ViewMode.CARD)
    ]


@pytest.mark.asyncio
async def test_download_saves_under_downloads_path(content_page, fake_page, settings):
    target = await content_page.download_selected_content()

    assert target == settings.downloads_path / "test_imagen_1.png"
    assert target.read_bytes() == b"fake-download"
    actions = [action for action, _ in fake_page.actions()]
    assert actions.index("expect_download") < actions.index("click")


@pytest.mark.asyncio
async def test_delete_waits_for_dialog_and_spinner(content_page, fake_page):
    await content_page.delete_selected_content()

    assert _clicked(fake_page) == [
        content_page.delete_button.description,
        content_page.accept_button.description,
    ]
    hidden_waits = [d for action, d, args in fake_page.calls if action == "wait_for" and args == ("hidden",)]
    assert hidden_waits == [
        content_page.open_dialog.description,
        content_page.loading_spinner.description,
    ]


@pytest.mark.asyncio
async def test_copy_cut_paste_buttons(content_page, fake_page):
    await content_page.copy_selected_content()
    await content_page.cut_selected_content()
    await content_page.paste_selected_content()

    assert _clicked(fake_page) == [
        content_page.copy_button.description,
        content_page.cut_button.description,
        content_page.paste_button.description,
    ]


@pytest.mark.asyncio
async def test_right_click_content_item(content_page, fake_page):
    await content_page.right_click_content_item("test_imagen_1.png")

    clicks = [args for action, _, args in fake_page.calls if action == "click"]
    assert clicks == [({"button": "right"},)]


@pytest.mark.asyncio
async def test_create_web_address_content_flow(content_page, fake_page):
    await content_page.create_web_address_content("https://www.example.com", "WEB - demo")

    steps = [
        (action, description)
        for action, description in fake_page.actions()
        if action in ("click", "fill")
    ]
    assert steps == [
        ("click", content_page.add_button.description),
        ("click", content_page.web_address_option.description),
        ("fill", content_page.url_input.description),
        ("fill", content_page.url_name_input.description),
        ("click", content_page.save_button.description),
    ]
    fills = [args[0] for action, _, args in fake_page.calls if action == "fill"]
    assert fills == ["https://www.example.com", "WEB - demo"]
    assert content_page.folder_dialog_state is FolderDialogState.CLOSED


@pytest.mark.asyncio
async def test_search_content_submits_query(content_page, fake_page):
    await content_page.search_content("CONTENIDO")

    search = content_page.search_input.description
    assert [entry for entry in fake_page.actions() if entry[1] == search] == [
        ("wait_for", search),
        ("clear", search),
        ("fill", search),
        ("press", search),
    ]


@pytest.mark.asyncio
async def test_search_content_empty_query_only_clears(content_page, fake_page):
    await content_page.search_content("")

    assert ("fill", content_page.search_input.description) not in fake_page.actions()


@pytest.mark.asyncio
async def test_existence_queries(content_page, fake_page):
    fake_page.invisible.add(content_page.item_card("gone.png").description)

    assert await content_page.folder_exists("Carpeta") is True
    assert await content_page.content_item_exists("gone.png") is False


@pytest.mark.asyncio
async def test_existence_queries_survive_driver_errors(content_page, fake_page):
    fake_page.broken[content_page.folder_in_tree("Duplicada").description] = (
        "strict mode violation: locator resolved to 2 elements"
    )
    fake_page.broken[content_page.item_card("x.png").description] = (
        "Target page, context or browser has been closed"
    )

    assert await content_page.folder_exists("Duplicada") is False
    assert await content_page.content_item_exists("x.png") is False


@pytest.mark.asyncio
async def test_is_item_checked(content_page, fake_page):
    checkbox = content_page.item_card("test_imagen_1.png").get_by_role("checkbox")
    fake_page.checked[checkbox.description] = True

    assert await content_page.is_item_checked("test_imagen_1.png") is True
    assert await content_page.is_item_checked("test_imagen_2.png") is False
