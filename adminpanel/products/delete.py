"""
Product delete confirmation (``product.delete``).

Single deletes arrive as ``delete-confirmation`` from a row button, bulk
deletes as the ``bulk-delete-confirmation`` broadcast from the table header.
Nothing is deleted until ``confirm()``; the gate is checked again there.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete

from adminpanel.db.models import Product
from adminpanel.engine.component import PanelComponent
from adminpanel.engine.errors import PanelAuthorizationError
from adminpanel.engine.i18n import trans
from adminpanel.engine.logging import log_exception
from adminpanel.security.abilities import ability

logger = logging.getLogger("adminpanel.products.delete")


class ProductDelete(PanelComponent):
    component_name = "product.delete"

    STATE_FIELDS = ("pending_ids", "table_name", "is_bulk", "is_open")

    def __init__(self, session, state: Optional[Dict[str, Any]] = None, **kwargs: Any):
        super().__init__(session, **kwargs)
        self.pending_ids: List[Any] = []
        self.table_name = ""
        self.is_bulk = False
        self.is_open = False
        if state:
            for name in self.STATE_FIELDS:
                if name in state:
                    setattr(self, name, state[name])
        self.register_listeners()

    def dump_state(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.STATE_FIELDS}

    def listeners(self) -> Dict[str, Callable[[Any], Any]]:
        return {
            "delete-confirmation": self.ask_single,
            "bulk-delete-confirmation": self.ask_bulk,
        }

    def ask_single(self, payload: Dict[str, Any]) -> None:
        self._ask(payload, bulk=False)

    def ask_bulk(self, payload: Dict[str, Any]) -> None:
        self._ask(payload, bulk=True)

    def _ask(self, payload: Dict[str, Any], bulk: bool) -> None:
        self.pending_ids = list(payload.get("ids") or [])
        self.table_name = payload.get("tableName", "")
        self.is_bulk = bulk
        self.is_open = bool(self.pending_ids)

    @property
    def confirm_message(self) -> str:
        return trans("common.delete_confirm", count=len(self.pending_ids), table=self.table_name)

    def confirm(self) -> int:
        """Delete the pending products. Returns the number of rows deleted."""
        if not self.pending_ids:
            self.cancel()
            return 0
        capability = ability("bulkDelete" if self.is_bulk else "delete", "product")
        try:
            self.gate.authorize(capability, self.pending_ids, object_type="tables")
            result = self.session.execute(delete(Product).where(Product.id.in_(self.pending_ids)))
            self.session.commit()
            deleted = result.rowcount or 0
        except PanelAuthorizationError:
            self.flash("error", trans("auth.forbidden"))
            self.cancel()
            return 0
        except Exception as e:
            self.session.rollback()
            log_exception(
                logger, self.component_name, "confirm", e,
                user_id=self.current_user_id(), ids=list(self.pending_ids),
            )
            self.flash("error", trans("product.messages.common_error_message"))
            self.cancel()
            return 0

        logger.info(f"Deleted {deleted} product(s): {self.pending_ids}")
        self.flash("success", trans("product.messages.delete_success", count=deleted))
        table_name = self.table_name
        self.cancel()
        self.dispatch("deSelectCheckBoxEvent")
        self.dispatch(f"pg:eventRefresh-{table_name}")
        return deleted

    def cancel(self) -> None:
        self.pending_ids = []
        self.table_name = ""
        self.is_bulk = False
        self.is_open = False
