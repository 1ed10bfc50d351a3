from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import List
import time
from ordertrace.api.dependencies import get_order_service, request_logger
from ordertrace.orders import CreateOrder, Order, OrderService, OrderValidationError
from ordertrace.router import CategoryLogger

router = APIRouter(prefix="/api/orders", tags=["orders"])

CATEGORY = "ordertrace.api.OrdersController"


@router.post("", response_model=Order, status_code=201)
async def create_order(
    payload: CreateOrder,
    service: OrderService = Depends(get_order_service),
    logger: CategoryLogger = Depends(request_logger(CATEGORY)),
):
    """
    Create an order

    - **customer_id**: Existing customer
    - **items**: Product IDs and quantities (at least one)
    """
    start_time = time.perf_counter()

    logger.info(lambda: f"HTTP POST /api/orders called. Payload: {payload.model_dump_json()}")

    try:
        order = service.create_order(payload)
    except OrderValidationError as e:
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(
            f"Validation error while creating order: {e}. Time taken: {elapsed_ms:.0f} ms."
        )
        return JSONResponse(status_code=400, content={"message": str(e)})

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"Order {order.id} created successfully via API in {elapsed_ms:.0f} ms.")
    return order


@router.get("/{order_id}", response_model=Order)
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    logger: CategoryLogger = Depends(request_logger(CATEGORY)),
):
    """Get a single order by ID"""
    logger.info(f"HTTP GET /api/orders/{order_id} called.")

    order = service.get_order(order_id)
    if order is None:
        logger.warning(f"Order with ID {order_id} not found.")
        return JSONResponse(status_code=404, content={"message": f"Order with id {order_id} not found."})

    return order


@router.get("/customer/{customer_id}", response_model=List[Order])
async def get_orders_for_customer(
    customer_id: int,
    service: OrderService = Depends(get_order_service),
    logger: CategoryLogger = Depends(request_logger(CATEGORY)),
):
    """List all orders placed by a customer"""
    logger.info(f"HTTP GET /api/orders/customer/{customer_id} called.")
    return service.list_orders_for_customer(customer_id)
