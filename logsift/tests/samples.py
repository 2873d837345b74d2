"""Shared sample data for tests: stack traces, records and source files."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

from logsift.core.models import LogLevel, LogRecord

BASE_TIME = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

NPE_TRACE = """java.lang.NullPointerException: Cannot invoke method on null object
\tat com.example.OrderService.processOrder(OrderService.java:23)
\tat com.example.OrderController.createOrder(OrderController.java:45)
"""

CHAINED_TRACE = """java.lang.NullPointerException: Cannot invoke method on null object
\tat com.example.OrderService.processOrder(OrderService.java:23)
\tat com.example.OrderController.createOrder(OrderController.java:45)
\tat sun.reflect.NativeMethodAccessorImpl.invoke0(Native Method)
\tat org.springframework.web.servlet.FrameworkServlet.service(FrameworkServlet.java:897)
Caused by: java.lang.IllegalStateException: Customer not loaded
\tat com.example.Order.getCustomer(Order.java:67)
\tat com.example.OrderService.processOrder(OrderService.java:22)
\t... 4 more
"""

PAYMENT_TRACE = """java.lang.IllegalStateException: Payment gateway unavailable
\tat com.example.PaymentService.charge(PaymentService.java:89)
\tat com.example.OrderService.processOrder(OrderService.java:27)
"""

# Line numbers matter: processOrder spans lines 16-27, line 23 is the NPE
ORDER_SERVICE_SOURCE = """package com.example;

import java.util.List;
import java.util.Optional;

public class OrderService {

    private final OrderRepository repository;
    private final PaymentService paymentService;

    public OrderService(OrderRepository repository, PaymentService paymentService) {
        this.repository = repository;
        this.paymentService = paymentService;
    }

    public Order processOrder(String orderId) {
        Order order = repository.findById(orderId);
        if (order == null) {
            throw new IllegalArgumentException("Order not found: " + orderId);
        }

        // This line might throw NullPointerException
        String customerEmail = order.getCustomer().getEmail();

        paymentService.charge(order);
        return order;
    }

    public List<Order> getOrdersByCustomer(String customerId) {
        return repository.findByCustomerId(customerId);
    }
}
"""


def make_record(
    message: str | None = "Something failed",
    level: LogLevel = LogLevel.ERROR,
    minutes_ago: int = 0,
    **kwargs,
) -> LogRecord:
    """Build a record relative to BASE_TIME."""
    return LogRecord(
        timestamp=BASE_TIME - timedelta(minutes=minutes_ago),
        level=level,
        logger=kwargs.pop("logger", "com.example.OrderService"),
        message=message,
        **kwargs,
    )


def sample_records() -> list[LogRecord]:
    """Five identical NPEs, one payment failure, ten INFO and one WARN record."""
    records = [
        make_record(
            message=f"Error processing order {1000 + i}",
            minutes_ago=i,
            stack_trace=NPE_TRACE,
            class_name="com.example.OrderService",
            method_name="processOrder",
            file_name="OrderService.java",
            line_number=23,
        )
        for i in range(5)
    ]
    records.append(
        make_record(
            message="Payment failed for customer 12345",
            minutes_ago=10,
            logger="com.example.PaymentService",
            stack_trace=PAYMENT_TRACE,
            class_name="com.example.PaymentService",
            method_name="charge",
            file_name="PaymentService.java",
            line_number=89,
        )
    )
    records.extend(
        make_record(
            message=f"Processing request {i}",
            level=LogLevel.INFO,
            minutes_ago=i * 2,
            logger="com.example.Application",
        )
        for i in range(10)
    )
    records.append(
        make_record(
            message="Cache miss for key: user_profile_123",
            level=LogLevel.WARN,
            minutes_ago=5,
            logger="com.example.CacheService",
        )
    )
    return records


def write_order_service(source_root: Path) -> Path:
    """Write OrderService.java under ``source_root/com/example``."""
    package_dir = source_root / "com" / "example"
    package_dir.mkdir(parents=True, exist_ok=True)
    path = package_dir / "OrderService.java"
    path.write_text(ORDER_SERVICE_SOURCE, encoding="utf-8")
    return path
