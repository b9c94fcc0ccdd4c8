"""
Dashboard Extension Hooks

Plugins customise the dashboard through named callbacks registered at
application start-up. Callbacks get copies or frozen values and return what
they want changed; the dashboard merges the results itself.

- order_excludes(frozenset) -> iterable of statuses or None
- sales_excludes(frozenset) -> iterable of statuses or None
- view(DashboardView copy) -> mapping of field overrides or None
- password_changed(MemberSnapshot) -> None

Example:
    extensions = app.state.extensions

    @extensions.on_sales_excludes
    def count_returns_as_lost(excludes):
        return excludes | {OrderStatus.RETURNED}
"""

from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional

import structlog
from fastapi import Request
from pydantic import BaseModel, ConfigDict

from storefront_admin.database.models import Member
from storefront_admin.enums import OrderStatus

logger = structlog.get_logger(__name__)


class MemberSnapshot(BaseModel):
    """Read-only view of a staff member handed to extensions"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    login_id: str
    name: str


ExcludesHook = Callable[[FrozenSet[OrderStatus]], Optional[Iterable[OrderStatus]]]
ViewHook = Callable[[BaseModel], Optional[Mapping[str, Any]]]
PasswordChangedHook = Callable[[MemberSnapshot], None]


class DashboardExtensions:
    """Registry of dashboard extension callbacks"""

    def __init__(self):
        self.order_excludes: List[ExcludesHook] = []
        self.sales_excludes: List[ExcludesHook] = []
        self.view: List[ViewHook] = []
        self.password_changed: List[PasswordChangedHook] = []

    def on_order_excludes(self, hook: ExcludesHook) -> ExcludesHook:
        self.order_excludes.append(hook)
        return hook

    def on_sales_excludes(self, hook: ExcludesHook) -> ExcludesHook:
        self.sales_excludes.append(hook)
        return hook

    def on_view(self, hook: ViewHook) -> ViewHook:
        self.view.append(hook)
        return hook

    def on_password_changed(self, hook: PasswordChangedHook) -> PasswordChangedHook:
        self.password_changed.append(hook)
        return hook

    def resolve_order_excludes(self, base: Iterable[OrderStatus]) -> FrozenSet[OrderStatus]:
        return _fold_excludes(self.order_excludes, base)

    def resolve_sales_excludes(self, base: Iterable[OrderStatus]) -> FrozenSet[OrderStatus]:
        return _fold_excludes(self.sales_excludes, base)

    def view_overrides(self, view: BaseModel) -> Dict[str, Any]:
        """
        Overrides from every view hook, later hooks winning.

        Each hook gets its own deep copy of `view`; only returned
        mappings reach the dashboard.
        """
        overrides: Dict[str, Any] = {}
        for hook in self.view:
            result = hook(view.model_copy(deep=True))
            if result:
                overrides.update(result)
        return overrides

    def notify_password_changed(self, member: Member) -> None:
        snapshot = MemberSnapshot.model_validate(member)
        for hook in self.password_changed:
            hook(snapshot)


def _fold_excludes(hooks: List[ExcludesHook], base: Iterable[OrderStatus]) -> FrozenSet[OrderStatus]:
    excludes = frozenset(base)
    for hook in hooks:
        replacement = hook(excludes)
        if replacement is not None:
            excludes = frozenset(replacement)
            logger.debug("Exclusion set replaced by extension", hook=getattr(hook, "__name__", repr(hook)))
    return excludes


def get_extensions(request: Request) -> DashboardExtensions:
    """FastAPI dependency returning the application's extension registry."""
    return request.app.state.extensions
