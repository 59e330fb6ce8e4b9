"""
AdminPanel Grid — declarative data-table toolkit.

Tables subclass GridComponent and declare their datasource, columns,
filters, derived fields, header buttons and per-row action buttons.
"""

from adminpanel.grid.buttons import Button, ButtonAction
from adminpanel.grid.columns import Column
from adminpanel.grid.component import GridComponent
from adminpanel.grid.fields import Fields
from adminpanel.grid.filters import Filter

__all__ = ["Button", "ButtonAction", "Column", "Fields", "Filter", "GridComponent"]
