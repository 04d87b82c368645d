"""
Google Sheets 주문 미러

공급자별 스프레드시트에 주문을 한 줄씩 기록하는 best-effort 동기화입니다.
- 주문 생성 시: A:H 열에 주문 스냅샷 추가
- 상태 변경 시: A열에서 주문 ID를 찾아 H열(Status) 갱신

SheetSyncAdapter는 트랜잭션 커밋 이후에만 호출되며,
어떤 예외도 호출자에게 전파하지 않습니다 (로그만 남기고 버림).
"""

import logging
from concurrent.futures import Executor
from typing import Callable, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build

from diamondapi.config import Settings
from diamondapi.core.exceptions import ExternalSyncError
from diamondapi.schemas.order import OrderSheetRow

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class GoogleSheetsMirror:
    def __init__(self, settings: Settings, service_factory: Optional[Callable] = None):
        self.settings = settings
        self.sheet_name = settings.GOOGLE_SHEET_NAME
        self._service_factory = service_factory or self._build_service
        self._service = None

    def _build_service(self):
        if not self.settings.GOOGLE_SERVICE_ACCOUNT_EMAIL or not self.settings.GOOGLE_PRIVATE_KEY:
            raise ExternalSyncError("Google service account credentials are not configured")

        info = {
            "type": "service_account",
            "client_email": self.settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
            # 환경변수에는 줄바꿈이 \n 문자열로 들어옴
            "private_key": self.settings.GOOGLE_PRIVATE_KEY.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        return build("sheets", "v4", credentials=creds, cache_discovery=False)

    @property
    def service(self):
        if self._service is None:
            self._service = self._service_factory()
        return self._service

    def append_row(self, sheet_id: str, snapshot: OrderSheetRow) -> None:
        """주문 스냅샷을 시트 마지막 행에 추가"""
        self.service.spreadsheets().values().append(
            spreadsheetId=sheet_id,
            range=f"{self.sheet_name}!A:H",
            valueInputOption="USER_ENTERED",
            body={"values": [snapshot.to_row()]},
        ).execute()
        logger.info(f"Order {snapshot.order_id} appended to sheet {sheet_id}")

    def find_row_number(self, sheet_id: str, order_id: int) -> Optional[int]:
        """A열에서 주문 ID가 있는 행 번호(1부터 시작) 검색"""
        response = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=sheet_id, range=f"{self.sheet_name}!A:A")
            .execute()
        )
        rows: List[List[str]] = response.get("values", [])
        target = str(order_id)
        for index, row in enumerate(rows):
            if row and str(row[0]) == target:
                return index + 1
        return None

    def update_status_cell(self, sheet_id: str, order_id: int, status_label: str) -> bool:
        """
        주문 행의 Status 열(H) 갱신

        Returns:
            bool: 행을 찾아 갱신했으면 True, 시트에 주문이 없으면 False
        """
        row_number = self.find_row_number(sheet_id, order_id)
        if row_number is None:
            logger.warning(f"Order {order_id} not found in sheet {sheet_id}")
            return False

        self.service.spreadsheets().values().update(
            spreadsheetId=sheet_id,
            range=f"{self.sheet_name}!H{row_number}",
            valueInputOption="USER_ENTERED",
            body={"values": [[status_label]]},
        ).execute()
        logger.info(f"Order {order_id} updated in sheet {sheet_id} at row {row_number}")
        return True


class SheetSyncAdapter:
    """
    커밋 이후 실행되는 fire-and-forget 동기화 어댑터

    executor가 있으면 백그라운드 스레드로 넘기고, 없으면 즉시 실행합니다.
    실패는 ExternalSyncError로 로그만 남깁니다.
    """

    def __init__(self, mirror: GoogleSheetsMirror, executor: Optional[Executor] = None):
        self.mirror = mirror
        self.executor = executor

    def _dispatch(self, description: str, fn: Callable, *args) -> None:
        def run():
            try:
                fn(*args)
            except Exception as e:
                error = ExternalSyncError(f"{description} failed: {e}")
                logger.error(str(error), exc_info=True)

        if self.executor is None:
            run()
            return

        try:
            self.executor.submit(run)
        except RuntimeError as e:
            # executor가 이미 종료된 경우 (shutdown 이후)
            logger.error(f"{description} dropped: {e}")

    def order_created(self, sheet_id: Optional[str], snapshot: OrderSheetRow) -> None:
        if not sheet_id:
            return
        self._dispatch(
            f"Sheet append for order {snapshot.order_id}",
            self.mirror.append_row,
            sheet_id,
            snapshot,
        )

    def status_changed(self, sheet_id: Optional[str], order_id: int, status_label: str) -> None:
        if not sheet_id:
            return
        self._dispatch(
            f"Sheet status update for order {order_id}",
            self.mirror.update_status_cell,
            sheet_id,
            order_id,
            status_label,
        )
