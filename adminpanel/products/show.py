"""Product detail panel (``product.show``)."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from adminpanel.db.models import Product
from adminpanel.engine.component import PanelComponent
from adminpanel.engine.i18n import trans
from adminpanel.security.abilities import ability


class ProductShow(PanelComponent):
    component_name = "product.show"

    def __init__(self, session, **kwargs: Any):
        super().__init__(session, **kwargs)
        self.product: Optional[Dict[str, Any]] = None
        self.is_open = False
        self.register_listeners()

    def listeners(self) -> Dict[str, Callable[[Any], Any]]:
        return {"show-product-info": self.show_product_info}

    def show_product_info(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        product_id = payload["id"]
        product = self.session.get(Product, product_id)
        if product is None:
            self.flash("error", trans("product.show.not_found"))
            self.close()
            return None
        self.gate.authorize(ability("show", "product"), product, object_type="tables")

        fmt = self.config.ui.default_datetime_format
        self.product = {
            "id": product.id,
            "name": product.name,
            "status": product.status,
            "status_label": self.config.products.status.label_map().get(product.status, " "),
            "created_at": product.created_at.strftime(fmt) if product.created_at else "",
            "updated_at": product.updated_at.strftime(fmt) if product.updated_at else "",
        }
        self.is_open = True
        return self.product

    def close(self) -> None:
        self.product = None
        self.is_open = False
