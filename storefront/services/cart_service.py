# storefront/services/cart_service.py
import logging
from typing import Dict, Iterable, List, Optional, Sequence
from ..exceptions import CheckoutValidationError
from ..models.cart import CartLine, CheckoutPartition, SellerGroup
from .pricing_service import calculate_pricing

def group_by_seller(lines: Iterable[CartLine]) -> Dict[int, List[CartLine]]:
    """Group cart lines by seller, keeping cart order inside each group"""
    groups: Dict[int, List[CartLine]] = {}
    for line in lines:
        groups.setdefault(line.seller_id, []).append(line)
    return groups

def partition_cart(cart: Sequence[CartLine],
                   selected_line_ids: Optional[Sequence[int]] = None) -> CheckoutPartition:
    """Split a cart into the lines checked out now and the rest.

    Without a selection the whole cart is checked out, which only works when
    every line belongs to the same seller.
    """
    if not cart:
        raise CheckoutValidationError({"lines": "Cart is empty"})

    if selected_line_ids is None:
        checkout_lines = list(cart)
        remaining_lines: List[CartLine] = []
    else:
        if not selected_line_ids:
            raise CheckoutValidationError({"lines": "No cart lines selected for checkout"})
        by_id = {line.id: line for line in cart}
        unknown = [line_id for line_id in selected_line_ids if line_id not in by_id]
        if unknown:
            raise CheckoutValidationError(
                {"lines": f"Cart lines not found: {', '.join(str(i) for i in unknown)}"}
            )
        selected = set(selected_line_ids)
        checkout_lines = [line for line in cart if line.id in selected]
        remaining_lines = [line for line in cart if line.id not in selected]

    sellers = {line.seller_id for line in checkout_lines}
    if len(sellers) > 1:
        raise CheckoutValidationError(
            {"seller_id": "Checkout lines must all come from one seller; check out each seller separately"}
        )

    return CheckoutPartition(checkout_lines=checkout_lines, remaining_lines=remaining_lines)

class CartService:
    """Reads the buyer's cart and prepares seller-scoped checkouts"""

    def __init__(self, cart_repository):
        self.cart_repository = cart_repository
        self.logger = logging.getLogger(__name__)

    async def get_cart(self, buyer_id: int) -> List[CartLine]:
        return await self.cart_repository.get_cart(buyer_id)

    async def get_seller_groups(self, buyer_id: int) -> List[SellerGroup]:
        """The buyer's cart grouped by seller, each group priced on its own"""
        cart = await self.get_cart(buyer_id)
        return [
            SellerGroup(seller_id=seller_id, lines=lines, pricing=calculate_pricing(lines))
            for seller_id, lines in group_by_seller(cart).items()
        ]

    async def prepare_checkout(self, buyer_id: int,
                               selected_line_ids: Optional[Sequence[int]] = None) -> CheckoutPartition:
        cart = await self.get_cart(buyer_id)
        partition = partition_cart(cart, selected_line_ids)
        self.logger.debug(
            f"Buyer {buyer_id} checkout: {len(partition.checkout_lines)} line(s) from seller "
            f"{partition.seller_id}, {len(partition.remaining_lines)} left in cart"
        )
        return partition

    async def remove_purchased(self, buyer_id: int, lines: Sequence[CartLine]) -> None:
        """Drop purchased lines; a failure here never undoes the order"""
        try:
            await self.cart_repository.remove_lines(buyer_id, [line.id for line in lines])
        except Exception as e:
            self.logger.error(f"Error clearing purchased lines from cart of buyer {buyer_id}: {e}")
