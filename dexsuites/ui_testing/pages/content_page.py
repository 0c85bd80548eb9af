"""
================================================================================
Content Page Object (Async / Playwright)
================================================================================

Media library ("Librería de Medias") of DEX Manager.

Operations come in two tiers:
  - Atomic actions: exactly one interaction (open the add menu, choose the
    folder option, type a name, click a toolbar button)
  - Business flows: compositions of atomic actions plus the flow's own
    completion criterion (dialog closed, per-file success icon visible,
    download saved)

Folder creation is tracked as a small state machine:

    CLOSED -> MENU_OPEN -> DIALOG_OPEN -> NAME_ENTERED -> SUBMITTED -> CLOSED
                                            |
                                            +-> ERROR (forbidden characters;
                                                confirm button disabled)

================================================================================
"""

from __future__ import annotations

import base64
import mimetypes
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from dex_tools.data_generator import FORBIDDEN_FOLDER_CHARS
from dexsuites.ui_testing.framework.config import Settings
from dexsuites.ui_testing.framework.page_base import VISIBILITY_CHECK_TIMEOUT, BasePage
from dexsuites.ui_testing.framework.wait_helpers import get_wait_config, wait_with_backoff


PathLike = Union[str, Path]


class ViewMode(str, Enum):
    """Media library view modes; UNKNOWN when no option reports selected."""

    GRID = "grid"
    LIST = "list"
    CARD = "card"
    UNKNOWN = "unknown"


# Option labels in the "Cambiar Vista" menu
VIEW_MODE_LABELS: Dict[ViewMode, str] = {
    ViewMode.GRID: "Grilla Pequeña",
    ViewMode.LIST: "Lista Detallada",
    ViewMode.CARD: "Tarjetas Grandes",
}


class FolderDialogState(Enum):
    CLOSED = "closed"
    MENU_OPEN = "menu_open"
    DIALOG_OPEN = "dialog_open"
    NAME_ENTERED = "name_entered"
    SUBMITTED = "submitted"
    ERROR = "error"


class FolderNameRejectedError(Exception):
    """Raised when a folder name contains characters DEX Manager rejects."""

    def __init__(self, name: str, forbidden: Sequence[str]):
        self.name = name
        self.forbidden = list(forbidden)
        super().__init__(
            f"Folder name {name!r} rejected: contains forbidden characters "
            f"{' '.join(self.forbidden)}"
        )


def find_forbidden_characters(name: str, forbidden: str = FORBIDDEN_FOLDER_CHARS) -> List[str]:
    """Forbidden characters present in `name`, unique, in order of appearance."""
    found: List[str] = []
    for ch in name:
        if ch in forbidden and ch not in found:
            found.append(ch)
    return found


def duplicate_folder_name(name: str, index: int = 1) -> str:
    """Name DEX Manager gives to the `index`-th duplicate of `name`."""
    return f"{name}({index})"


def _css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


_DROP_FILES_SCRIPT = """
(files) => {
    const dataTransfer = new DataTransfer();
    for (const file of files) {
        const bytes = Uint8Array.from(atob(file.data), c => c.charCodeAt(0));
        dataTransfer.items.add(new File([bytes], file.name, { type: file.mime }));
    }
    return dataTransfer;
}
"""


class ContentPage(BasePage):
    """Content management page object (async)."""

    def __init__(
        self,
        page: Page,
        settings: Optional[Settings] = None,
        forbidden_chars: str = FORBIDDEN_FOLDER_CHARS,
    ):
        super().__init__(page, settings)
        self.forbidden_chars = forbidden_chars
        self._folder_dialog_state = FolderDialogState.CLOSED

        # Navigation
        self.content_library_button = (
            page.get_by_role("link", name="Librería de Medias").get_by_role("button")
        )
        self.content_header = (
            page.get_by_role("heading", name=re.compile(r"content|contenido", re.IGNORECASE))
            .or_(page.locator("h1"))
            .first
        )
        self.files_tree = page.locator("#dexFilesTree")
        self.root_folder = self.files_tree.get_by_text("/", exact=True)

        # Add menu and folder dialog
        self.add_button = page.locator("#mainFab").locator("#paperFab")
        self.folder_option = page.get_by_role("button", name="Carpeta")
        self.folder_name_input = page.get_by_role("textbox", name="Nuevo Nombre")
        self.accept_button = page.get_by_role("button", name="Aceptar")
        self.cancel_button = page.get_by_role("button", name="Cancelar")
        self.folder_error_text = page.get_by_text("No se permiten los siguientes caracteres")
        self.open_dialog = page.locator("paper-dialog[opened]").first
        self.loading_spinner = page.locator(".layout.vertical.center-center.container").first

        # Upload
        self.upload_files_button = page.get_by_role("button", name="Subir Archivo")
        self.file_input = (
            page.locator("#fileupload #fileInput")
            .or_(page.locator('input[type="file"]'))
            .first
        )
        self.drop_zone = page.locator('.drop-zone, .upload-area, [data-testid="drop-zone"]').first
        self.upload_progress = page.locator(".upload-progress, .progress-bar")
        self.upload_success = page.locator(".success").first

        # Selection and toolbar
        self.selection_menu_button = page.get_by_role("button", name="Selección de Items")
        self.select_all_option = page.get_by_role("option", name="Todos")
        self.select_none_option = page.get_by_role("option", name="Ninguno")
        self.download_button = page.locator(".toolbar > paper-icon-button").first
        self.delete_button = page.get_by_role("button", name="Eliminar Ítems Seleccionados")
        self.copy_button = page.get_by_role("button", name="Copiar Ítems Seleccionados")
        self.cut_button = page.get_by_role("button", name="Cortar Ítems Seleccionados")
        self.paste_button = page.get_by_role("button", name="Pegar Ítems Seleccionados")

        # View modes
        self.view_mode_button = page.get_by_role("button", name="Cambiar Vista")
        self.view_mode_options: Dict[ViewMode, Locator] = {
            mode: page.get_by_role("option", name=label)
            for mode, label in VIEW_MODE_LABELS.items()
        }

        # Web address content
        self.web_address_option = (
            page.get_by_role("menuitem", name=re.compile(r"web address|url|dirección web", re.IGNORECASE))
            .or_(page.get_by_text("WEB Address"))
            .first
        )
        self.url_input = (
            page.get_by_label("URL").or_(page.locator('input[name="url"], input[type="url"]')).first
        )
        self.url_name_input = (
            page.get_by_label("Name").or_(page.locator('input[name="displayName"]')).first
        )
        self.save_button = (
            page.get_by_role("button", name=re.compile(r"save|guardar", re.IGNORECASE))
            .or_(page.locator('[data-testid="save-button"]'))
            .first
        )
        self.search_input = (
            page.get_by_placeholder(re.compile(r"search|buscar", re.IGNORECASE))
            .or_(page.locator('[data-testid="search-input"]'))
            .first
        )

        # Content items
        self.content_items = page.locator(
            '.content-item, .file-item, [data-testid="content-item"], #dexFilesTree [role="option"]'
        )
        self.item_checkboxes = page.locator('.media-card paper-checkbox[role="checkbox"]')

    # =========================================================================
    # Parameterized Locators
    # =========================================================================

    def folder_in_tree(self, name: str) -> Locator:
        return self.files_tree.get_by_text(name, exact=True)

    def item_card(self, name: str) -> Locator:
        return self.page.locator(f'.media-card[title="{_css_string(name)}"]')

    def item_checkbox(self, name: str) -> Locator:
        return self.item_card(name).locator(".media-card-checkbox")

    def file_success_indicator(self, position: int) -> Locator:
        """Success icon of the `position`-th (1-based) row of the upload list."""
        return self.page.locator(
            f"div:nth-child({position}) > .horizontal > .file-status-icon > .success"
        )

    def view_mode_option(self, mode: ViewMode) -> Locator:
        try:
            return self.view_mode_options[ViewMode(mode)]
        except KeyError:
            raise ValueError(f"No view-mode option for {mode!r}") from None

    @property
    def folder_dialog_state(self) -> FolderDialogState:
        """Where the folder-creation flow of this page object currently is."""
        return self._folder_dialog_state

    def _set_dialog_state(self, state: FolderDialogState) -> None:
        logger.debug(f"Folder dialog: {self._folder_dialog_state.name} -> {state.name}")
        self._folder_dialog_state = state

    # =========================================================================
    # Atomic Actions
    # =========================================================================

    @allure.step("Open content module")
    async def go_to_content_module(self) -> None:
        await self.click(self.content_library_button)
        await self.wait_for_visible(self.content_header)

    async def open_add_menu(self) -> None:
        await self.click(self.add_button)
        self._set_dialog_state(FolderDialogState.MENU_OPEN)

    async def choose_folder_option(self) -> None:
        await self.click(self.folder_option)
        await self.wait_for_visible(self.folder_name_input)
        self._set_dialog_state(FolderDialogState.DIALOG_OPEN)

    async def type_folder_name(self, name: str) -> None:
        """Type `name` into the dialog; names with forbidden characters move to ERROR."""
        await self.fill(self.folder_name_input, name)
        if find_forbidden_characters(name, self.forbidden_chars):
            self._set_dialog_state(FolderDialogState.ERROR)
        else:
            self._set_dialog_state(FolderDialogState.NAME_ENTERED)

    async def confirm_dialog(self) -> None:
        """Click "Aceptar" and wait for the dialog to close."""
        await self.click(self.accept_button)
        self._set_dialog_state(FolderDialogState.SUBMITTED)
        await self.wait_for_hidden(self.open_dialog)
        self._set_dialog_state(FolderDialogState.CLOSED)

    async def cancel_dialog(self) -> None:
        await self.click(self.cancel_button)
        await self.wait_for_hidden(self.open_dialog)
        self._set_dialog_state(FolderDialogState.CLOSED)

    async def select_files(self, file_paths: Sequence[PathLike]) -> None:
        """
        Attach files to the upload input.

        The input element is hidden by design, so no visibility wait applies.
        """
        files = [str(Path(p)) for p in file_paths]
        logger.debug(f"Attaching files: {files}")
        await self.file_input.set_input_files(files)

    async def open_selection_menu(self) -> None:
        await self.click(self.selection_menu_button)

    async def choose_select_all_option(self) -> None:
        await self.click(self.select_all_option)

    async def choose_select_none_option(self) -> None:
        await self.click(self.select_none_option)

    async def open_view_mode_menu(self) -> None:
        await self.click(self.view_mode_button)

    async def switch_to_grid_view(self) -> None:
        await self.click(self.view_mode_option(ViewMode.GRID))

    async def switch_to_list_view(self) -> None:
        await self.click(self.view_mode_option(ViewMode.LIST))

    async def switch_to_card_view(self) -> None:
        await self.click(self.view_mode_option(ViewMode.CARD))

    async def copy_selected_content(self) -> None:
        await self.click(self.copy_button)

    async def cut_selected_content(self) -> None:
        await self.click(self.cut_button)

    async def paste_selected_content(self) -> None:
        await self.click(self.paste_button)

    async def open_folder(self, name: str) -> None:
        await self.click(self.folder_in_tree(name))

    async def navigate_to_root(self) -> None:
        await self.click(self.root_folder)

    async def right_click_content_item(self, name: str) -> None:
        await self.click(self.item_card(name), button="right")

    # =========================================================================
    # Business Flows
    # =========================================================================

    async def enter_folder_name(self, name: str) -> None:
        """Open the folder dialog and type `name` without confirming."""
        await self.open_add_menu()
        await self.choose_folder_option()
        await self.type_folder_name(name)

    async def create_folder(self, name: str) -> None:
        """
        Create a folder at the current location.

        Done when the dialog has closed. A name containing forbidden
        characters must leave the confirm button disabled: that is asserted,
        the dialog stays open in the ERROR state and FolderNameRejectedError
        is raised.

        Raises:
            FolderNameRejectedError: Name contains forbidden characters
            AssertionError: Confirm button enabled for a forbidden name
        """
        with allure.step(f"Create folder '{name}'"):
            await self.enter_folder_name(name)

            forbidden = find_forbidden_characters(name, self.forbidden_chars)
            if forbidden:
                await self.expect_disabled(self.accept_button)
                logger.info(f"Folder name rejected by the dialog: {name!r}")
                raise FolderNameRejectedError(name, forbidden)

            await self.confirm_dialog()
            logger.debug(f"Folder created: {name}")

    async def get_duplicate_folder_name(self, name: str, index: int = 1) -> str:
        """
        Visible name of the disambiguated sibling created for a duplicate.

        Only the `(1)` suffix has been observed; higher indexes are passed
        through unchanged.
        """
        locator = self.folder_in_tree(duplicate_folder_name(name, index))
        return (await self.get_text(locator)).strip()

    async def _open_upload_dialog(self) -> None:
        await self.open_add_menu()
        await self.click(self.upload_files_button)
        self._set_dialog_state(FolderDialogState.CLOSED)

    async def upload_single_file(self, file_path: PathLike) -> None:
        with allure.step(f"Upload file {Path(file_path).name}"):
            await self._open_upload_dialog()
            await self.select_files([file_path])
            await self.wait_for_visible(self.file_success_indicator(1))

    async def upload_multiple_files(self, file_paths: Sequence[PathLike]) -> None:
        """Upload several files and wait for every file's own success icon."""
        if not file_paths:
            raise ValueError("upload_multiple_files() needs at least one file")

        with allure.step(f"Upload {len(file_paths)} files"):
            await self._open_upload_dialog()
            await self.select_files(file_paths)
            await self._wait_for_each_file(len(file_paths))

    async def upload_by_drag_and_drop(self, file_paths: Sequence[PathLike]) -> None:
        """
        Open the upload dialog and drop files onto its drop zone.

        Dispatches dragenter/dragover/drop carrying a DataTransfer built in
        the page. When no drop zone is rendered the files go through the
        upload input instead.
        """
        if not file_paths:
            raise ValueError("upload_by_drag_and_drop() needs at least one file")

        with allure.step(f"Drag and drop {len(file_paths)} files"):
            await self._open_upload_dialog()
            if await self.is_visible(self.drop_zone, timeout=2000):
                payload = []
                for p in file_paths:
                    path = Path(p)
                    payload.append({
                        "name": path.name,
                        "mime": mimetypes.guess_type(path.name)[0] or "application/octet-stream",
                        "data": base64.b64encode(path.read_bytes()).decode("ascii"),
                    })
                data_transfer = await self.page.evaluate_handle(_DROP_FILES_SCRIPT, payload)
                for event in ("dragenter", "dragover", "drop"):
                    await self.drop_zone.dispatch_event(event, {"dataTransfer": data_transfer})
            else:
                logger.warning("Drop zone not rendered; attaching files through the upload input")
                await self.select_files(file_paths)

            await self._wait_for_each_file(len(file_paths))

    async def _wait_for_each_file(self, count: int) -> None:
        for position in range(1, count + 1):
            await self.wait_for_visible(self.file_success_indicator(position))

    async def wait_for_upload_complete(self, timeout: Optional[int] = None) -> None:
        """
        Wait for the upload success indicator.

        Falls back to backoff polling when the direct wait times out, since
        the progress list has no completion event.
        """
        try:
            await self.wait_for_visible(self.upload_success, timeout)
            return
        except PlaywrightTimeoutError:
            logger.warning("Upload success indicator not visible yet; polling with backoff")

        config = get_wait_config("upload")
        await wait_with_backoff(
            lambda: self.is_visible(self.upload_success, timeout=1000),
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            description="upload success indicator",
        )

    async def select_content_item(self, name: str) -> None:
        """Hover the card (the checkbox only reacts once hovered), then toggle it."""
        with allure.step(f"Select '{name}'"):
            await self.hover(self.item_card(name))
            await self.click(self.item_checkbox(name))

    async def select_all_items(self) -> None:
        with allure.step("Select all items"):
            await self.open_selection_menu()
            await self.choose_select_all_option()

    async def select_none_items(self) -> None:
        with allure.step("Select no items"):
            await self.open_selection_menu()
            await self.choose_select_none_option()

    async def switch_view_mode(self, mode: Union[ViewMode, str]) -> None:
        """Open the view menu and pick `mode` (grid, list or card)."""
        option = self.view_mode_option(ViewMode(mode))
        with allure.step(f"Switch view mode to {ViewMode(mode).value}"):
            await self.open_view_mode_menu()
            await self.click(option)

    async def download_selected_content(self) -> Path:
        """
        Download the current selection.

        Returns:
            Path of the saved file under the downloads directory
        """
        with allure.step("Download selected content"):
            async with self.page.expect_download(timeout=self.navigation_timeout) as download_info:
                await self.click(self.download_button)
            download = await download_info.value

            target_dir = self.settings.downloads_path
            target_dir.mkdir(parents=True, exist_ok=True)
            target = target_dir / download.suggested_filename
            await download.save_as(target)
            logger.info(f"Downloaded: {target}")
            return target

    async def delete_selected_content(self) -> None:
        """Delete the selection; done when the dialog and the spinner are gone."""
        with allure.step("Delete selected content"):
            await self.click(self.delete_button)
            await self.click(self.accept_button)
            await self.wait_for_hidden(self.open_dialog)
            await self.wait_for_hidden(self.loading_spinner)

    async def create_web_address_content(self, url: str, name: str) -> None:
        with allure.step(f"Create web address '{name}'"):
            await self.open_add_menu()
            await self.click(self.web_address_option)
            self._set_dialog_state(FolderDialogState.CLOSED)
            await self.fill(self.url_input, url)
            await self.fill(self.url_name_input, name)
            await self.click(self.save_button)

    async def search_content(self, query: str) -> None:
        """Run a search; an empty query clears the current filter."""
        with allure.step(f"Search content '{query}'"):
            await self.wait_for_visible(self.search_input)
            await self.search_input.clear()
            if query:
                await self.search_input.fill(query)
            await self.search_input.press("Enter")
            await self.wait_for_page_load("load")

    # =========================================================================
    # Queries
    # =========================================================================

    async def folder_exists(self, name: str) -> bool:
        return await self.is_visible(self.folder_in_tree(name))

    async def content_item_exists(self, name: str) -> bool:
        return await self.is_visible(self.item_card(name))

    async def get_content_item_count(self) -> int:
        return await self.content_items.count()

    async def is_item_checked(self, name: str) -> bool:
        return await self.item_card(name).get_by_role("checkbox").is_checked()

    async def are_all_items_checked(self) -> bool:
        """True when every card checkbox is checked; False for an empty library."""
        count = await self.item_checkboxes.count()
        if count == 0:
            return False

        for index in range(count):
            if not await self.item_checkboxes.nth(index).is_checked():
                return False
        return True

    async def get_active_view_mode(self) -> ViewMode:
        """First option whose aria-selected is "true"; ViewMode.UNKNOWN otherwise."""
        for mode, option in self.view_mode_options.items():
            try:
                selected = await option.get_attribute(
                    "aria-selected", timeout=VISIBILITY_CHECK_TIMEOUT
                )
            except PlaywrightError:
                continue
            if selected == "true":
                return mode
        return ViewMode.UNKNOWN


__all__ = [
    "ContentPage",
    "FolderDialogState",
    "FolderNameRejectedError",
    "VIEW_MODE_LABELS",
    "ViewMode",
    "duplicate_folder_name",
    "find_forbidden_characters",
]
