from datetime import date
from unittest.mock import MagicMock

import pytest

from diamondapi.config import Settings
from diamondapi.core.exceptions import ExternalSyncError
from diamondapi.providers.sheets.google_sheets import GoogleSheetsMirror, SheetSyncAdapter
from diamondapi.schemas.order import OrderSheetRow


@pytest.fixture
def snapshot():
    return OrderSheetRow(
        order_id=42,
        created_date=date(2024, 5, 1),
        player_account_id="12345678",
        server_id="2001",
        in_game_name="Kagura",
        skin_name="Moonlight Kimono",
        diamond_price=899,
        status_label="Pending",
    )


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def mirror(service):
    return GoogleSheetsMirror(
        Settings(DATABASE_URL="sqlite://", GOOGLE_SHEET_NAME="Orders"),
        service_factory=lambda: service,
    )


def _values(service):
    return service.spreadsheets.return_value.values.return_value


class TestGoogleSheetsMirror:
    def test_append_row(self, mirror, service, snapshot):
        mirror.append_row("sheet-1", snapshot)

        _values(service).append.assert_called_once_with(
            spreadsheetId="sheet-1",
            range="Orders!A:H",
            valueInputOption="USER_ENTERED",
            body={
                "values": [
                    ["42", "2024-05-01", "12345678", "2001", "Kagura", "Moonlight Kimono", 899, "Pending"]
                ]
            },
        )

    def test_update_status_cell(self, mirror, service):
        _values(service).get.return_value.execute.return_value = {
            "values": [["Order ID"], ["7"], ["42"]]
        }

        assert mirror.update_status_cell("sheet-1", 42, "Completed") is True

        _values(service).update.assert_called_once_with(
            spreadsheetId="sheet-1",
            range="Orders!H3",
            valueInputOption="USER_ENTERED",
            body={"values": [["Completed"]]},
        )

    def test_update_missing_row(self, mirror, service):
        _values(service).get.return_value.execute.return_value = {"values": [["Order ID"], []]}

        assert mirror.update_status_cell("sheet-1", 42, "Completed") is False
        _values(service).update.assert_not_called()

    def test_missing_credentials(self):
        mirror = GoogleSheetsMirror(
            Settings(DATABASE_URL="sqlite://", GOOGLE_SERVICE_ACCOUNT_EMAIL=None, GOOGLE_PRIVATE_KEY=None)
        )
        with pytest.raises(ExternalSyncError):
            mirror.service


class TestSheetSyncAdapter:
    def test_inline_dispatch(self, snapshot):
        mirror = MagicMock()
        adapter = SheetSyncAdapter(mirror)

        adapter.order_created("sheet-1", snapshot)
        adapter.status_changed("sheet-1", 42, "Followed")

        mirror.append_row.assert_called_once_with("sheet-1", snapshot)
        mirror.update_status_cell.assert_called_once_with("sheet-1", 42, "Followed")

    def test_no_sheet_id_skips(self, snapshot):
        mirror = MagicMock()
        adapter = SheetSyncAdapter(mirror)

        adapter.order_created(None, snapshot)
        adapter.status_changed("", 42, "Followed")

        mirror.append_row.assert_not_called()
        mirror.update_status_cell.assert_not_called()

    def test_failures_are_swallowed(self, snapshot):
        mirror = MagicMock()
        mirror.append_row.side_effect = RuntimeError("quota exceeded")
        mirror.update_status_cell.side_effect = ExternalSyncError("no credentials")
        adapter = SheetSyncAdapter(mirror)

        adapter.order_created("sheet-1", snapshot)
        adapter.status_changed("sheet-1", 42, "Followed")

    def test_executor_dispatch(self, snapshot):
        mirror = MagicMock()
        executor = MagicMock()
        adapter = SheetSyncAdapter(mirror, executor=executor)

        adapter.order_created("sheet-1", snapshot)

        executor.submit.assert_called_once()
        mirror.append_row.assert_not_called()

        task = executor.submit.call_args.args[0]
        task()
        mirror.append_row.assert_called_once_with("sheet-1", snapshot)

    def test_shutdown_executor_drops_task(self, snapshot):
        executor = MagicMock()
        executor.submit.side_effect = RuntimeError("cannot schedule new futures after shutdown")
        adapter = SheetSyncAdapter(MagicMock(), executor=executor)

        adapter.order_created("sheet-1", snapshot)
