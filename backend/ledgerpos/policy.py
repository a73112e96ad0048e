# Overview: Role to capability table consulted once per request at the HTTP boundary.

"""
Capabilities

Route decorators ask ``role_can(role, capability)``; nothing else in the
package compares role strings.
"""

SALE_CREATE = "sale.create"
SALE_VIEW = "sale.view"
INVENTORY_ADJUST = "inventory.adjust"
INVENTORY_VIEW = "inventory.view"
CREDIT_REPAY = "credit.repay"
CREDIT_VIEW = "credit.view"
SHIFT_OPEN = "shift.open"
SHIFT_CLOSE_ANY = "shift.close_any"

ALL_CAPABILITIES = frozenset({
    SALE_CREATE,
    SALE_VIEW,
    INVENTORY_ADJUST,
    INVENTORY_VIEW,
    CREDIT_REPAY,
    CREDIT_VIEW,
    SHIFT_OPEN,
    SHIFT_CLOSE_ANY,
})

ROLE_CAPABILITIES = {
    "owner": ALL_CAPABILITIES,
    "manager": ALL_CAPABILITIES,
    "cashier": frozenset({
        SALE_CREATE,
        SALE_VIEW,
        INVENTORY_VIEW,
        CREDIT_REPAY,
        CREDIT_VIEW,
        SHIFT_OPEN,
    }),
}


def capabilities_for(role: str) -> frozenset:
    return ROLE_CAPABILITIES.get(role, frozenset())


def role_can(role: str, capability: str) -> bool:
    return capability in capabilities_for(role)
