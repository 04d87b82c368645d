from typing import List, Optional

from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session, joinedload

from diamondapi.models.supplier import Supplier as SupplierModel
from diamondapi.models.user import User as UserModel
from diamondapi.repositories.base import BaseRepository
from diamondapi.schemas.order import SortDirection
from diamondapi.schemas.supplier import SupplierResponse, SupplierSortField


class SupplierRepository(BaseRepository[SupplierModel, SupplierResponse]):
    """공급자 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(SupplierModel, SupplierResponse, db)

    def _joined(self):
        return self.db.query(self.model_class).options(joinedload(self.model_class.user))

    def get_joined(self, supplier_id: int) -> Optional[SupplierResponse]:
        """연결된 사용자 정보를 포함한 공급자 조회"""
        model_instance = (
            self._joined()
            .populate_existing()
            .filter(self.model_class.id == supplier_id)
            .first()
        )
        return self._to_schema(model_instance)

    def list_suppliers(
        self,
        search: Optional[str] = None,
        sort_by: SupplierSortField = SupplierSortField.CREATED_AT,
        sort_dir: SortDirection = SortDirection.DESC,
        only_id: Optional[int] = None,
    ) -> List[SupplierResponse]:
        """공급자 목록 (이름/사용자 이메일 검색, 정렬)"""
        query = self._joined().join(UserModel, UserModel.id == self.model_class.user_id)

        if only_id is not None:
            query = query.filter(self.model_class.id == only_id)

        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(self.model_class.name).like(pattern),
                    func.lower(UserModel.email).like(pattern),
                )
            )

        if sort_by == SupplierSortField.USER:
            sort_column = UserModel.email
        else:
            sort_column = getattr(self.model_class, sort_by.value)

        direction = asc if sort_dir == SortDirection.ASC else desc
        query = query.order_by(direction(sort_column), direction(self.model_class.id))
        return self._to_schemas(query.all())
