"""Errors raised by the ranking engine."""


class ListingNotFoundError(LookupError):
    """The referenced listing id does not resolve to an existing listing."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id
