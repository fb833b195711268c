"""Sales tax on the discounted subtotal."""

TAX_RATES = {"DE": 0.19, "FR": 0.20, "GB": 0.20, "US": 0.0725}


def add_tax(order, advance, name):
    taxable = order["subtotal"] - order.get("discount", 0.0)
    tax = round(taxable * TAX_RATES.get(order["country"], 0.0), 2)
    advance({**order, "tax": tax, "total": round(taxable + tax, 2)})


def register(hooks):
    hooks.inject("order.submitted", "tax", add_tax, {"after": "discounts", "depends": "discounts"})
