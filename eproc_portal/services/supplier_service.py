# Supplier registry
# eproc_portal/services/supplier_service.py

import logging
from typing import Optional

from eproc_portal.data_access.procurement_repository import PROPOSALS_TABLE, SUPPLIERS_TABLE
from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.models.auth import Caller
from eproc_portal.models.common import Page
from eproc_portal.models.supplier import Supplier, SupplierCreate, SupplierOrderBy, SupplierStatus, SupplierUpdate
from eproc_portal.services.procurement_service import ProcurementService, ProcurementServiceError

logger = logging.getLogger(__name__)


class SupplierService(ProcurementService):
    """Admins manage the registry; a supplier user may read its own record."""

    def __init__(self, repository, profiles: ProfileRepository, notifications=None):
        super().__init__(repository, notifications)
        self.profiles = profiles

    def _check_unique(self, column: str, value: Optional[str], supplier_id: Optional[str], message: str) -> None:
        if not value:
            return
        existing = self._store(f"checking the supplier {column}", self.repository.find_one, SUPPLIERS_TABLE, **{column: value})
        if existing and existing["id"] != supplier_id:
            raise ProcurementServiceError(message, 409)

    async def list_suppliers(
        self,
        caller: Caller,
        status: Optional[SupplierStatus] = None,
        certified: Optional[bool] = None,
        search: Optional[str] = None,
        order_by: SupplierOrderBy = SupplierOrderBy.CREATED_AT,
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> Page[Supplier]:
        self._require_admin(caller, "Only administrators can manage suppliers.")
        result = self._store(
            "listing suppliers",
            self.repository.list,
            SUPPLIERS_TABLE,
            filters={"status": status, "certified": certified},
            search=search,
            search_columns=("name", "rnc", "contact_email"),
            order_by=order_by.value,
            descending=descending,
            limit=limit,
            offset=offset,
        )
        return self._page(Supplier, result, limit, offset)

    async def get_supplier(self, caller: Caller, supplier_id: str) -> Supplier:
        if not caller.is_admin and not caller.owns(supplier_id):
            raise ProcurementServiceError("Supplier not found.", 404)
        return Supplier.model_validate(self._get_or_404(SUPPLIERS_TABLE, supplier_id, "supplier"))

    async def get_own_supplier(self, caller: Caller) -> Supplier:
        if not caller.supplier_id:
            raise ProcurementServiceError("No supplier is linked to this account.", 404)
        return await self.get_supplier(caller, caller.supplier_id)

    async def create_supplier(self, caller: Caller, data: SupplierCreate) -> Supplier:
        """
        Raises:
            ProcurementServiceError: 403 for non-admins, 409 when the RNC or contact email is taken.
        """
        self._require_admin(caller, "Only administrators can create suppliers.")
        self._check_unique("rnc", data.rnc, None, "A supplier with this RNC already exists.")
        self._check_unique("contact_email", data.contact_email, None, "A supplier with this email already exists.")
        row = self._store("creating the supplier", self.repository.insert, SUPPLIERS_TABLE, data.model_dump(mode="json"))
        supplier = Supplier.model_validate(row)
        self._record("supplier", supplier.id, "created", {"name": supplier.name, "rnc": supplier.rnc}, caller)
        logger.info(f"Supplier {supplier.name} ({supplier.id}) created by {caller.user_id}")
        return supplier

    async def update_supplier(self, caller: Caller, supplier_id: str, changes: SupplierUpdate) -> Supplier:
        self._require_admin(caller, "Only administrators can update suppliers.")
        current = self._get_or_404(SUPPLIERS_TABLE, supplier_id, "supplier")
        updates = changes.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return Supplier.model_validate(current)
        self._check_unique("rnc", updates.get("rnc"), supplier_id, "Another supplier already uses this RNC.")
        self._check_unique("contact_email", updates.get("contact_email"), supplier_id, "Another supplier already uses this email.")
        row = self._store("updating the supplier", self.repository.update, SUPPLIERS_TABLE, supplier_id, updates)
        if row is None:
            raise ProcurementServiceError("Supplier not found.", 404)
        self._record("supplier", supplier_id, "updated", updates, caller)
        return Supplier.model_validate(row)

    async def delete_supplier(self, caller: Caller, supplier_id: str) -> None:
        """
        Raises:
            ProcurementServiceError: 422 while proposals or user accounts still reference the supplier.
        """
        self._require_admin(caller, "Only administrators can delete suppliers.")
        supplier = self._get_or_404(SUPPLIERS_TABLE, supplier_id, "supplier")
        if self._store("counting proposals", self.repository.count, PROPOSALS_TABLE, supplier_id=supplier_id):
            raise ProcurementServiceError("A supplier with proposals cannot be deleted.", 422)
        if self._store("finding linked users", self.profiles.list_ids_by_supplier, supplier_id):
            raise ProcurementServiceError("A supplier with linked users cannot be deleted.", 422)
        self._store("deleting the supplier", self.repository.delete, SUPPLIERS_TABLE, supplier_id)
        self._record("supplier", supplier_id, "deleted", {"name": supplier.get("name")}, caller)
