from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime, timezone
from decimal import Decimal
import itertools
import threading
from ordertrace.router import LoggerRouter

CATEGORY = "ordertrace.orders.OrderService"


class OrderValidationError(ValueError):
    """Raised when an order request references unknown customers or products"""


class Customer(BaseModel):
    id: int
    full_name: str


class Product(BaseModel):
    id: int
    name: str
    price: Decimal
    is_active: bool = True


class CreateOrderItem(BaseModel):
    """Order line requested by the client"""
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class CreateOrder(BaseModel):
    """Order creation request"""
    customer_id: int = Field(..., gt=0)
    items: List[CreateOrderItem] = Field(default_factory=list)


class OrderItem(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class Order(BaseModel):
    id: int
    customer_id: int
    customer_name: str
    order_date: datetime
    total_amount: Decimal
    status: str = "Pending"
    items: List[OrderItem]


DEFAULT_CUSTOMERS = [
    Customer(id=1, full_name="Pranaya Rout"),
    Customer(id=2, full_name="Hina Sharma"),
]

DEFAULT_PRODUCTS = [
    Product(id=1, name="Laptop", price=Decimal("1200.00")),
    Product(id=2, name="Wireless Mouse", price=Decimal("25.50")),
    Product(id=3, name="Mechanical Keyboard", price=Decimal("80.00")),
    Product(id=4, name="CRT Monitor", price=Decimal("99.00"), is_active=False),
]


class OrderService:
    """In-memory order management, logging every step through the router"""

    def __init__(
        self,
        logger_router: LoggerRouter,
        customers: Optional[List[Customer]] = None,
        products: Optional[List[Product]] = None,
    ):
        self.logger = logger_router.get_logger(CATEGORY)
        self.customers: Dict[int, Customer] = {c.id: c for c in (customers or DEFAULT_CUSTOMERS)}
        self.products: Dict[int, Product] = {p.id: p for p in (products or DEFAULT_PRODUCTS)}
        self.orders: Dict[int, Order] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_order(self, request: CreateOrder) -> Order:
        """
        Validate and store a new order

        Args:
            request: Customer and requested items

        Returns:
            The stored order with computed totals

        Raises:
            OrderValidationError: Unknown customer, no items, or unknown/inactive products
        """
        self.logger.info(
            f"Creating order for CustomerId {request.customer_id} with {len(request.items)} items."
        )

        customer = self.customers.get(request.customer_id)
        if customer is None:
            self.logger.warning(
                f"Cannot create order: CustomerId {request.customer_id} not found."
            )
            raise OrderValidationError(f"Customer with id {request.customer_id} not found.")

        if not request.items:
            self.logger.warning(
                f"Cannot create order: no items provided for CustomerId {request.customer_id}."
            )
            raise OrderValidationError("Order must contain at least one item.")

        product_ids = sorted({item.product_id for item in request.items})
        missing = [
            pid for pid in product_ids
            if pid not in self.products or not self.products[pid].is_active
        ]
        if missing:
            self.logger.warning(
                "Cannot create order: some products not found or inactive. "
                f"Missing IDs: {', '.join(str(pid) for pid in missing)}."
            )
            raise OrderValidationError("One or more products are invalid or not active.")

        items = []
        total = Decimal("0")
        for requested in request.items:
            product = self.products[requested.product_id]
            line_total = product.price * requested.quantity
            items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=requested.quantity,
                unit_price=product.price,
                line_total=line_total,
            ))
            total += line_total

            self.logger.debug(
                lambda: f"Added item: ProductId={product.id}, Quantity={requested.quantity}, "
                        f"UnitPrice={product.price}, LineTotal={line_total}."
            )

        with self._lock:
            order = Order(
                id=next(self._ids),
                customer_id=customer.id,
                customer_name=customer.full_name,
                order_date=datetime.now(timezone.utc),
                total_amount=total,
                items=items,
            )
            self.orders[order.id] = order

        self.logger.info(
            f"Order {order.id} created successfully for CustomerId {customer.id}, total {total}."
        )
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        self.logger.info(f"Fetching order with OrderId {order_id}.")

        order = self.orders.get(order_id)
        if order is None:
            self.logger.warning(f"Order with OrderId {order_id} not found.")
            return None

        self.logger.debug(f"Order {order.id} found for CustomerId {order.customer_id}.")
        return order

    def list_orders_for_customer(self, customer_id: int) -> List[Order]:
        self.logger.info(f"Fetching orders for CustomerId {customer_id}.")

        orders = [o for o in self.orders.values() if o.customer_id == customer_id]

        self.logger.info(f"Found {len(orders)} orders for CustomerId {customer_id}.")
        return orders
